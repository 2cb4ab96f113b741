# app/services/cart_view.py
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, List

from app.domain.cart_math import get_count, get_total, is_recently_added, ordered_for_display
from app.domain.schemas import CartItem
from app.services.cart_store import CartStore, utcnow
from app.utils.settings import RECENT_WINDOW_SECONDS


class CartView:
    """
    Projekcja koszyka do wyswietlania, odswiezana przez subskrypcje.
    Tylko odczyt, zadnej logiki biznesowej. Kolejnosc: najnowsze na gorze.
    """

    def __init__(
        self,
        store: CartStore,
        clock: Callable[[], datetime] = utcnow,
        recent_window: float = RECENT_WINDOW_SECONDS,
    ):
        self.clock = clock
        self.recent_window = recent_window
        self._items: Dict[str, CartItem] = {}
        self._unsubscribe = store.subscribe(self._on_change)

    def _on_change(self, items: Dict[str, CartItem]) -> None:
        self._items = items

    @property
    def items(self) -> List[CartItem]:
        return ordered_for_display(self._items)

    @property
    def total(self) -> Decimal:
        return get_total(self._items)

    @property
    def count(self) -> int:
        return get_count(self._items)

    def recent_keys(self, now: datetime | None = None) -> set[str]:
        now = now or self.clock()
        return {
            key for key, item in self._items.items()
            if is_recently_added(item, now, self.recent_window)
        }

    def close(self) -> None:
        self._unsubscribe()
