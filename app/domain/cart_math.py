# app/domain/cart_math.py
"""Czyste funkcje nad mapa koszyka. Bez efektow ubocznych, bez bledow."""
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping

from app.domain.schemas import CartItem

_CENT = Decimal("0.01")


def _to_minor(amount: Decimal) -> int:
    return int((amount / _CENT).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def get_total(items: Mapping[str, CartItem]) -> Decimal:
    #sumujemy w groszach jako int, zeby nie bylo dryfu przy wielu malych kwotach
    minor = sum(_to_minor(i.unit_price) * i.quantity for i in items.values())
    return (Decimal(minor) * _CENT).quantize(_CENT)


def get_line_total(item: CartItem) -> Decimal:
    return (Decimal(_to_minor(item.unit_price) * item.quantity) * _CENT).quantize(_CENT)


def get_count(items: Mapping[str, CartItem]) -> int:
    # liczba roznych pozycji, jak w "Checkout (N items)"
    return len(items)


def ordered_for_display(items: Mapping[str, CartItem] | Iterable[CartItem]) -> list[CartItem]:
    values = items.values() if isinstance(items, Mapping) else items
    return sorted(values, key=lambda i: i.added_at, reverse=True)


def is_recently_added(item: CartItem, now: datetime, window_seconds: float = 5) -> bool:
    age = now - item.added_at
    return timedelta(0) <= age <= timedelta(seconds=window_seconds)
