# app/repos/cart_repo.py
from typing import Callable, TypeVar

from app.data.partition_store import PartitionStore, Unsubscribe
from app.domain.errors import Conflict
from app.domain.schemas import CartState
from app.utils.logging import get_logger
from app.utils.retry import conflict_retrying
from app.utils.settings import CART_MAX_RETRIES, CART_PARTITION, CART_RETRY_WAIT_MAX

logger = get_logger(__name__)

T = TypeVar("T")


class _StaleVersion(Exception):
    """Partycja zmienila sie miedzy odczytem a zapisem."""


class CartRepo:
    def __init__(
        self,
        store: PartitionStore,
        partition: str = CART_PARTITION,
        max_retries: int = CART_MAX_RETRIES,
        retry_wait_max: float = CART_RETRY_WAIT_MAX,
    ):
        self.store = store
        self.partition = partition
        self.max_retries = max_retries
        self.retry_wait_max = retry_wait_max

    def get_state(self) -> CartState:
        return CartState.from_raw(self.store.read(self.partition).value)

    def mutate(self, apply: Callable[[CartState], T]) -> T:
        """
        Atomowy read-check-write calej partycji.

        apply dostaje swiezy CartState, zmienia go w miejscu i zwraca wynik.
        Wyjatek z apply przerywa operacje bez zapisu.
        Przy nieaktualnej wersji cala petla leci od nowa, max max_retries razy, potem Conflict.
        """
        try:
            for attempt in conflict_retrying(_StaleVersion, self.max_retries, self.retry_wait_max):
                with attempt:
                    return self._try_once(apply, attempt.retry_state.attempt_number)
        except _StaleVersion:
            raise Conflict(self.partition, self.max_retries) from None

    def _try_once(self, apply: Callable[[CartState], T], attempt_number: int) -> T:
        snap = self.store.read(self.partition)
        state = CartState.from_raw(snap.value)

        result = apply(state)

        # Optimistic locking
        # np. zapisz gdzie version == 3, inaczej 0 rows affected
        if not self.store.compare_and_set(self.partition, snap.version, state.to_raw()):
            logger.warning(
                f"Konflikt wspolbieznosci na {self.partition} (wersja {snap.version}), "
                f"proba {attempt_number}/{self.max_retries}"
            )
            raise _StaleVersion()

        return result

    def subscribe(self, callback: Callable[[CartState], None]) -> Unsubscribe:
        return self.store.subscribe(
            self.partition,
            lambda raw: callback(CartState.from_raw(raw)),
        )
