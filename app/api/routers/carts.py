#app/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.deps import get_cart_store, get_notifier
from app.domain.cart_math import get_count, get_line_total, get_total, is_recently_added, ordered_for_display
from app.domain.errors import CartError, DuplicateItem
from app.domain.schemas import (
    CartItemOut,
    CartOut,
    QuantityIn,
    QuantityOut,
    ScanIn,
    ScanResult,
)
from app.services.cart_store import CartStore
from app.services.notification_service import NotificationService, scan_failure, scan_success
from app.utils.settings import RECENT_WINDOW_SECONDS

router = APIRouter(prefix="/cart", tags=["cart"])


def _http_error(e: CartError) -> HTTPException:
    detail = {"kind": e.kind, "message": e.message}
    if isinstance(e, DuplicateItem):
        detail["existing"] = e.existing.model_dump(mode="json")
    return HTTPException(status_code=e.http_status, detail=detail)


@router.get("", response_model=CartOut)
def get_cart(store: CartStore = Depends(get_cart_store)):
    items = store.get_items()
    now = store.clock()
    return CartOut(
        items=[
            CartItemOut(
                **item.model_dump(),
                line_total=get_line_total(item),
                recent=is_recently_added(item, now, RECENT_WINDOW_SECONDS),
            )
            for item in ordered_for_display(items)
        ],
        total=get_total(items),
        count=get_count(items),
    )


@router.post("/scan", response_model=ScanResult, status_code=status.HTTP_201_CREATED)
def scan(
    payload: ScanIn,
    response: Response,
    store: CartStore = Depends(get_cart_store),
    notifier: NotificationService = Depends(get_notifier),
):
    try:
        result = store.add_scanned_item(payload.barcode)
    except CartError as e:
        notifier.notify(scan_failure(payload.barcode, e))
        raise _http_error(e)

    notifier.notify(scan_success(payload.barcode, result))
    #polityka increment: ponowny skan nic nie tworzy
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return result


@router.put("/items/{key}", response_model=QuantityOut)
def set_quantity(
    key: str,
    payload: QuantityIn,
    store: CartStore = Depends(get_cart_store),
):
    try:
        item = store.set_quantity(key, payload.quantity)
    except CartError as e:
        raise _http_error(e)
    return QuantityOut(item=item, removed=item is None)


@router.delete("/items/{key}", status_code=status.HTTP_204_NO_CONTENT)
def remove_item(key: str, store: CartStore = Depends(get_cart_store)):
    try:
        store.remove_item(key)
    except CartError as e:
        raise _http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
def clear_cart(store: CartStore = Depends(get_cart_store)):
    try:
        store.clear()
    except CartError as e:
        raise _http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
