# app/services/notification_service.py
from typing import Callable, List

from app.celery_worker import celery_app
from app.domain.errors import CartError, DuplicateItem, InvalidProduct
from app.domain.schemas import Outcome, ScanResult
from app.utils.logging import get_logger

logger = get_logger(__name__)

OutcomeListener = Callable[[Outcome], None]


def scan_success(barcode: str, result: ScanResult) -> Outcome:
    item = result.item
    if result.created:
        message = f"Added {item.name} to cart"
    else:
        message = f"{item.name} quantity is now {item.quantity}"
    return Outcome(
        status="success",
        message=message,
        barcode=barcode,
        product_name=item.name,
        key=item.key,
    )


def scan_failure(barcode: str, error: CartError) -> Outcome:
    product_name = None
    key = None
    if isinstance(error, DuplicateItem):
        product_name = error.existing.name
        key = error.existing.key
    elif isinstance(error, InvalidProduct):
        product_name = error.product.name
    return Outcome(
        status="error",
        kind=error.kind,
        message=error.message,
        barcode=barcode,
        product_name=product_name,
        key=key,
    )


class NotificationService:
    """
    Kanal powiadomien (toast/log). Rdzen emituje abstrakcyjne Outcome,
    warstwa prezentacji decyduje jak je pokazac.
    """

    def __init__(self, dispatch_async: bool = True):
        self.dispatch_async = dispatch_async
        self._listeners: List[OutcomeListener] = []

    def add_listener(self, listener: OutcomeListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def notify(self, outcome: Outcome) -> None:
        if outcome.status == "success":
            logger.info(f"[OUTCOME] {outcome.message}")
        else:
            logger.warning(f"[OUTCOME] {outcome.kind}: {outcome.message}")

        for listener in list(self._listeners):
            listener(outcome)

        if self.dispatch_async:
            #koszyk juz zapisany, awaria brokera nie zmienia wyniku skanu
            try:
                publish_outcome_task.delay(outcome.model_dump())
            except Exception:
                logger.exception(f"Nie udalo sie wyslac powiadomienia dla {outcome.barcode!r}")


@celery_app.task(name="app.services.notification_service.publish_outcome_task")
def publish_outcome_task(outcome: dict):
    """
    Celery task - w prawdziwym systemie wyslalby push do terminali kasowych.
    Teraz tylko loguje.
    """
    logger.info(f"[NOTIFICATION] {outcome['status']}: {outcome['message']}")
    return {"barcode": outcome.get("barcode"), "status": "sent"}
