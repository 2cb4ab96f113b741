# app/services/product_client.py
from typing import Iterable, Protocol

import requests
from requests import RequestException

from app.domain.errors import TransportError
from app.domain.schemas import Product
from app.utils.logging import get_logger
from app.utils.retry import http_retry
from app.utils.settings import PRODUCT_SERVICE_URL

logger = get_logger(__name__)


class ProductCatalog(Protocol):
    def find_by_barcode(self, barcode: str) -> Product | None: ...

    def decrement_stock(self, product_id: str) -> None: ...


class InMemoryCatalog:
    """Katalog w pamieci (dev, testy)."""

    def __init__(self, products: Iterable[Product] = ()):
        self.products = {p.id: p for p in products}

    def find_by_barcode(self, barcode: str) -> Product | None:
        for product in self.products.values():
            if product.barcode == barcode:
                return product
        return None

    def decrement_stock(self, product_id: str) -> None:
        product = self.products[product_id]
        if product.stock is None:
            return
        self.products[product_id] = product.model_copy(
            update={"stock": max(product.stock - 1, 0)}
        )


class ProductClient:
    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    def find_by_barcode(self, barcode: str) -> Product | None:
        try:
            data = self._fetch_by_barcode(barcode)
        except RequestException as e:
            logger.error(f"ProductClient lookup {barcode} failed: {e}")
            raise TransportError(f"Product service unavailable: {e}") from e

        if data is None:
            return None
        return Product.model_validate(data)

    def decrement_stock(self, product_id: str) -> None:
        try:
            self._post_decrement(product_id)
        except RequestException as e:
            logger.error(f"ProductClient decrement {product_id} failed: {e}")
            raise TransportError(f"Stock update for {product_id} failed: {e}") from e

    @http_retry()
    def _fetch_by_barcode(self, barcode: str) -> dict | None:
        url = f"{self.base_url}/products/by-barcode/{barcode}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        #404 to zwykly wynik skanowania, nie awaria
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    @http_retry()
    def _post_decrement(self, product_id: str) -> None:
        url = f"{self.base_url}/products/{product_id}/decrement-stock"
        logger.info(f"ProductClient POST {url}")

        resp = requests.post(url, timeout=self.timeout)
        resp.raise_for_status()
