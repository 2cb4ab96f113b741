# app/domain/errors.py
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.domain.schemas import CartItem, Product


class CartError(Exception):
    """Baza dla wszystkich oczekiwanych bledow koszyka. Zaden nie powinien wywrocic procesu."""

    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__


class ProductNotFound(CartError):
    http_status = 404

    def __init__(self, barcode: str):
        super().__init__(f"Product not found for barcode {barcode!r}")
        self.barcode = barcode


class InvalidProduct(CartError):
    http_status = 422

    def __init__(self, product: Product, reason: str):
        super().__init__(f"{product.name} ({product.barcode}) cannot be added: {reason}")
        self.product = product
        self.reason = reason


class DuplicateItem(CartError):
    http_status = 409

    def __init__(self, existing: CartItem):
        super().__init__(f"{existing.name} ({existing.barcode}) is already in the cart")
        self.existing = existing


class NotFound(CartError):
    http_status = 404

    def __init__(self, key: str):
        super().__init__(f"Cart item {key!r} does not exist")
        self.key = key


class Conflict(CartError):
    http_status = 409

    def __init__(self, partition: str, attempts: int):
        super().__init__(
            f"Cart {partition!r} kept changing concurrently, gave up after {attempts} attempts"
        )
        self.partition = partition
        self.attempts = attempts


class TransportError(CartError):
    http_status = 503
