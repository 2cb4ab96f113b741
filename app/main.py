# app/main.py
from fastapi import FastAPI
import uvicorn

from app.api.routers import carts, health
from app.utils.logging import get_logger
from app.utils.settings import CART_PARTITION, STORAGE_BACKEND

logger = get_logger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Scan Cart Service",
        version="1.0.0",
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(carts.router)

    logger.info(f"Cart partition {CART_PARTITION!r} on {STORAGE_BACKEND} storage")
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
