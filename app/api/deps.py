# app/api/deps.py
from functools import lru_cache

from app.services.cart_store import CartStore
from app.services.factory import build_cart_store
from app.services.notification_service import NotificationService


@lru_cache
def get_cart_store() -> CartStore:
    return build_cart_store()


@lru_cache
def get_notifier() -> NotificationService:
    return NotificationService()
