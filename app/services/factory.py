# app/services/factory.py
from app.data.partition_store import MemoryPartitionStore, PartitionStore
from app.repos.cart_repo import CartRepo
from app.services.cart_store import CartStore, DuplicatePolicy
from app.services.product_client import ProductCatalog, ProductClient
from app.utils.logging import get_logger
from app.utils import settings

logger = get_logger(__name__)


def build_partition_store(backend: str | None = None) -> PartitionStore:
    backend = backend or settings.STORAGE_BACKEND
    logger.info(f"Storage backend: {backend}")

    if backend == "memory":
        return MemoryPartitionStore()

    if backend == "sql":
        from app.data.database import init_db, make_engine, make_session_factory
        from app.data.sql_store import SqlPartitionStore

        engine = make_engine(settings.DATABASE_URL)
        init_db(engine)
        return SqlPartitionStore(make_session_factory(engine))

    if backend == "redis":
        from app.data.redis_store import RedisPartitionStore

        return RedisPartitionStore(settings.REDIS_URL)

    raise ValueError(f"Unknown STORAGE_BACKEND {backend!r}")


def build_cart_store(
    store: PartitionStore | None = None,
    catalog: ProductCatalog | None = None,
) -> CartStore:
    repo = CartRepo(store or build_partition_store())
    return CartStore(
        repo=repo,
        catalog=catalog or ProductClient(),
        duplicate_policy=DuplicatePolicy(settings.DUPLICATE_POLICY),
        decrement_stock_on_scan=settings.DECREMENT_STOCK_ON_SCAN,
    )
