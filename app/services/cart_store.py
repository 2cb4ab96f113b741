# app/services/cart_store.py
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict

from app.data.partition_store import Unsubscribe
from app.domain.errors import DuplicateItem, InvalidProduct, NotFound, ProductNotFound
from app.domain.schemas import CartItem, CartState, ScanResult
from app.repos.cart_repo import CartRepo
from app.services.product_client import ProductCatalog
from app.utils.logging import get_logger

logger = get_logger(__name__)


class DuplicatePolicy(str, Enum):
    REJECT = "reject"
    INCREMENT = "increment"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CartStore:
    """
    Wspolny koszyk sterowany skanerem.

    Kazda komenda (add_scanned_item, set_quantity, remove_item, clear) to jeden
    atomowy read-check-write calej partycji przez CartRepo.mutate.
    Sprawdzenia (duplikat, istnienie klucza) sa wewnatrz kroku atomowego, nie przed nim.
    """

    def __init__(
        self,
        repo: CartRepo,
        catalog: ProductCatalog,
        duplicate_policy: DuplicatePolicy = DuplicatePolicy.REJECT,
        decrement_stock_on_scan: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repo = repo
        self.catalog = catalog
        self.duplicate_policy = DuplicatePolicy(duplicate_policy)
        self.decrement_stock_on_scan = decrement_stock_on_scan
        self.clock = clock

    #query - odczyt
    def get_items(self) -> Dict[str, CartItem]:
        return self.repo.get_state().items

    def subscribe(self, callback: Callable[[Dict[str, CartItem]], None]) -> Unsubscribe:
        return self.repo.subscribe(lambda state: callback(state.items))

    #commands
    def add_scanned_item(self, barcode: str) -> ScanResult:
        logger.info(f"Skan {barcode!r}, szukam produktu w katalogu")
        product = self.catalog.find_by_barcode(barcode)

        if product is None:
            raise ProductNotFound(barcode)

        if product.unit_price is None or product.unit_price <= 0:
            raise InvalidProduct(product, "missing or non-positive price")

        if self.decrement_stock_on_scan and product.stock is not None and product.stock < 1:
            raise InvalidProduct(product, "out of stock")

        def apply(state: CartState) -> ScanResult:
            now = self.clock()
            existing = state.find_by_product(product.id)

            if existing:
                if self.duplicate_policy is DuplicatePolicy.REJECT:
                    #przerywa mutacje, nic nie jest zapisywane
                    raise DuplicateItem(existing)
                existing.quantity += 1
                existing.updated_at = now
                return ScanResult(item=existing.model_copy(), created=False)

            key = state.next_key()
            item = CartItem(
                key=key,
                product_id=product.id,
                name=product.name,
                barcode=product.barcode,
                unit_price=product.unit_price,
                quantity=1,
                added_at=now,
                updated_at=now,
            )
            state.items[key] = item
            state.sequence = int(key) + 1
            return ScanResult(item=item, created=True)

        result = self.repo.mutate(apply)

        if result.created:
            logger.info(f"Dodano {product.name} ({product.id}) do koszyka pod kluczem {result.item.key}")
        else:
            logger.info(f"{product.name} juz w koszyku, ilosc {result.item.quantity}")

        if self.decrement_stock_on_scan:
            # zapis koszyka juz poszedl, nie cofamy go jesli katalog nie odpowie
            self.catalog.decrement_stock(product.id)

        return result

    def set_quantity(self, key: str, quantity: int) -> CartItem | None:
        """Zwraca zaktualizowana pozycje albo None, gdy quantity <= 0 usunelo ja."""
        if quantity <= 0:
            self.remove_item(key)
            return None

        def apply(state: CartState) -> CartItem:
            item = state.items.get(key)
            if item is None:
                raise NotFound(key)
            item.quantity = quantity
            item.updated_at = self.clock()
            return item.model_copy()

        item = self.repo.mutate(apply)
        logger.info(f"Pozycja {key}: ilosc {quantity}")
        return item

    def remove_item(self, key: str) -> None:
        def apply(state: CartState) -> None:
            if key not in state.items:
                raise NotFound(key)
            del state.items[key]

        self.repo.mutate(apply)
        logger.info(f"Usunieto pozycje {key} z koszyka")

    def clear(self) -> None:
        def apply(state: CartState) -> None:
            #cala partycja od zera, licznik kluczy tez
            state.items.clear()
            state.sequence = 0

        self.repo.mutate(apply)
        logger.info(f"Koszyk {self.repo.partition} wyczyszczony")
