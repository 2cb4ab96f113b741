"""
Shared fixtures.

Every test builds its own in-memory partition store, so carts never leak between tests.
"""
import os

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("CELERY_TASK_ALWAYS_EAGER", "1")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.data.partition_store import MemoryPartitionStore
from app.domain.schemas import Product
from app.repos.cart_repo import CartRepo
from app.services.cart_store import CartStore
from app.services.notification_service import NotificationService
from app.services.product_client import InMemoryCatalog

PARTITION = "test/items"


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_products():
    return [
        Product(id="p1", barcode="111", name="Espresso beans", unit_price=Decimal("12.00"), stock=5),
        Product(id="p2", barcode="222", name="Tea", unit_price=Decimal("10.00"), stock=1),
        Product(id="p3", barcode="333", name="Paper cups", unit_price=Decimal("5.50")),
        Product(id="p0", barcode="000", name="Free sample", unit_price=Decimal("0")),
        Product(id="px", barcode="555", name="Unpriced thing"),
    ]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog():
    return InMemoryCatalog(make_products())


@pytest.fixture
def partition_store():
    return MemoryPartitionStore()


@pytest.fixture
def repo(partition_store):
    return CartRepo(partition_store, PARTITION, max_retries=50, retry_wait_max=0.01)


@pytest.fixture
def cart_store(repo, catalog, clock):
    return CartStore(repo, catalog, clock=clock)


@pytest.fixture
def notifier():
    return NotificationService(dispatch_async=False)


@pytest.fixture
def test_client(cart_store, notifier):
    from app.api.deps import get_cart_store, get_notifier
    from app.main import create_app

    app = create_app()
    app.dependency_overrides[get_cart_store] = lambda: cart_store
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as client:
        yield client
