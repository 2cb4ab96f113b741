# app/api/routers/health.py
from fastapi import APIRouter

from app.utils.settings import STORAGE_BACKEND

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok", "storage": STORAGE_BACKEND}
