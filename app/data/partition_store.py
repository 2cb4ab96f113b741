# app/data/partition_store.py
import copy
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable

from app.utils.logging import get_logger

logger = get_logger(__name__)

Listener = Callable[[dict | None], None]
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class Snapshot:
    value: dict | None
    #0 = partycja nigdy nie zapisana
    version: int


class _Subscription:
    def __init__(self, callback: Listener):
        self.callback = callback
        self.active = True
        self.seen_version = -1
        #trzymany przez caly callback, unsubscribe czeka az sie skonczy
        #RLock: callback moze sam sie wypisac albo mutowac koszyk
        self.lock = threading.RLock()


class PartitionStore(ABC):
    """
    Magazyn klucz-wartosc z optymistyczna wspolbieznoscia na poziomie calej partycji:
    - read zwraca wartosc + wersje
    - compare_and_set zapisuje tylko jesli wersja sie nie zmienila
    - subscribe daje powiadomienia o kazdej zatwierdzonej zmianie
    """

    def __init__(self):
        self._subs: dict[str, list[_Subscription]] = {}
        self._subs_lock = threading.Lock()
        #pierwszy subscribe / ostatni unsubscribe razem z hookami backendu
        self._hooks_lock = threading.Lock()

    @abstractmethod
    def read(self, name: str) -> Snapshot: ...

    @abstractmethod
    def compare_and_set(self, name: str, expected_version: int, value: dict) -> bool: ...

    def subscribe(self, name: str, callback: Listener, initial: bool = True) -> Unsubscribe:
        """
        Rejestruje listenera. Przy initial=True dostaje od razu aktualna wartosc,
        potem kazda zatwierdzona zmiane, nigdy starsza wersje po nowszej.
        """
        sub = _Subscription(callback)
        with self._hooks_lock:
            with self._subs_lock:
                self._subs.setdefault(name, []).append(sub)
                first = len(self._subs[name]) == 1
            if first:
                self._on_first_subscriber(name)
        if initial:
            snap = self.read(name)
            self._deliver(sub, snap.value, snap.version)

        def unsubscribe() -> None:
            with sub.lock:
                sub.active = False
            with self._hooks_lock:
                with self._subs_lock:
                    subs = self._subs.get(name, [])
                    if sub not in subs:
                        return
                    subs.remove(sub)
                    last = not subs
                if last:
                    self._on_last_unsubscribe(name)

        return unsubscribe

    def close(self) -> None:
        pass

    def _on_first_subscriber(self, name: str) -> None:
        pass

    def _on_last_unsubscribe(self, name: str) -> None:
        pass

    def _dispatch(self, name: str, value: dict | None, version: int) -> None:
        #wywolywane bez zadnych lockow, callback moze od razu mutowac koszyk
        with self._subs_lock:
            subs = list(self._subs.get(name, []))
        for sub in subs:
            self._deliver(sub, value, version)

    def _deliver(self, sub: _Subscription, value: dict | None, version: int) -> None:
        with sub.lock:
            #starsza wersja po nowszej jest pomijana
            if not sub.active or version <= sub.seen_version:
                return
            sub.seen_version = version
            try:
                sub.callback(copy.deepcopy(value))
            except Exception:
                #zapis juz zatwierdzony, blad listenera nie moze go "cofnac" ani zablokowac reszty
                logger.exception(f"Listener for version {version} failed")


class MemoryPartitionStore(PartitionStore):
    """Magazyn w pamieci procesu. Mutex udaje atomowosc zdalnego serwera."""

    def __init__(self):
        super().__init__()
        self._data: dict[str, Snapshot] = {}
        self._lock = threading.Lock()

    def read(self, name: str) -> Snapshot:
        with self._lock:
            snap = self._data.get(name, Snapshot(None, 0))
            return Snapshot(copy.deepcopy(snap.value), snap.version)

    def compare_and_set(self, name: str, expected_version: int, value: dict) -> bool:
        with self._lock:
            current = self._data.get(name, Snapshot(None, 0))
            if current.version != expected_version:
                return False
            stored = copy.deepcopy(value)
            self._data[name] = Snapshot(stored, current.version + 1)

        logger.debug(f"Partition {name} committed at version {expected_version + 1}")
        self._dispatch(name, stored, expected_version + 1)
        return True
