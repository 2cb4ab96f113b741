# app/domain/schemas.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Product(BaseModel):
    """Wpis katalogu. Koszyk tylko go czyta."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    barcode: str
    name: str
    #rozne zrodla katalogu nazywaja cene roznie
    unit_price: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("unit_price", "price", "regularPrice"),
    )
    stock: int | None = Field(default=None, ge=0)
    image: str | None = None


class CartItem(BaseModel):
    key: str
    product_id: str
    name: str
    barcode: str
    unit_price: Decimal
    quantity: int = Field(..., ge=1)
    added_at: datetime
    updated_at: datetime


class CartState(BaseModel):
    """Cala partycja koszyka: mapa key -> CartItem plus licznik kluczy."""

    items: dict[str, CartItem] = Field(default_factory=dict)
    sequence: int = Field(default=0, ge=0)

    @classmethod
    def from_raw(cls, raw: dict | None) -> CartState:
        if not raw:
            return cls()
        return cls.model_validate(raw)

    def to_raw(self) -> dict:
        return self.model_dump(mode="json")

    def find_by_product(self, product_id: str) -> CartItem | None:
        for item in self.items.values():
            if item.product_id == product_id:
                return item
        return None

    def next_key(self) -> str:
        #klucze nienumeryczne nie licza sie do maksimum
        numeric = [int(k) for k in self.items if k.isascii() and k.isdigit()]
        highest = max(numeric) + 1 if numeric else 0
        return str(max(self.sequence, highest))


class ScanResult(BaseModel):
    item: CartItem
    created: bool


class Outcome(BaseModel):
    """Abstrakcyjny wynik operacji dla warstwy prezentacji (toast, log, terminal)."""

    status: Literal["success", "error"]
    message: str
    kind: str | None = None
    barcode: str | None = None
    product_name: str | None = None
    key: str | None = None


# --- API ---


class ScanIn(BaseModel):
    barcode: str = Field(..., min_length=1, max_length=128)


class QuantityIn(BaseModel):
    quantity: int


class CartItemOut(CartItem):
    line_total: Decimal
    recent: bool


class CartOut(BaseModel):
    items: list[CartItemOut]
    total: Decimal
    count: int


class QuantityOut(BaseModel):
    item: CartItem | None = None
    removed: bool
