# app/services/scan_service.py
import threading

from app.domain.errors import CartError
from app.domain.schemas import Outcome
from app.services.cart_store import CartStore
from app.services.notification_service import NotificationService, scan_failure, scan_success
from app.utils.logging import get_logger

logger = get_logger(__name__)


class ScanSession:
    """
    Handler dla zrodla skanow (kamera, czytnik, stdin): on_decoded(text) na kazdy zdekodowany kod.

    close() = kontekst wlasciciela zniknal. Wyniki skanow w locie sa wtedy odrzucane
    (bez powiadomien), ale zapis do koszyka, jesli juz poszedl, zostaje.
    """

    def __init__(self, store: CartStore, notifier: NotificationService):
        self.store = store
        self.notifier = notifier
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def on_decoded(self, text: str) -> Outcome | None:
        if self.closed:
            logger.info(f"Sesja zamknieta, ignoruje skan {text!r}")
            return None

        #bez debounce, duplikaty odrzuca sam koszyk
        try:
            result = self.store.add_scanned_item(text)
        except CartError as e:
            outcome = scan_failure(text, e)
        else:
            outcome = scan_success(text, result)

        if self.closed:
            logger.info(f"Sesja zamknieta w trakcie skanu {text!r}, wynik odrzucony ({outcome.status})")
            return None

        self.notifier.notify(outcome)
        return outcome

    def close(self) -> None:
        self._closed.set()
