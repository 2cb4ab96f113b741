# product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


PRODUCTS = {
    "p1": {"id": "p1", "barcode": "111", "name": "Espresso beans 1kg", "regularPrice": 12.00, "stock": 40},
    "p2": {"id": "p2", "barcode": "222", "name": "Oat milk", "regularPrice": 2.49, "stock": 120},
    "p3": {"id": "p3", "barcode": "333", "name": "Paper cups x50", "regularPrice": 5.50, "stock": 15},
    "p4": {"id": "p4", "barcode": "444", "name": "Sample (not for sale)", "regularPrice": 0, "stock": 3},
}


@app.get("/products/by-barcode/{barcode}")
def get_product_by_barcode(barcode: str):
    for product in PRODUCTS.values():
        if product["barcode"] == barcode:
            return product
    raise HTTPException(status_code=404, detail="Product not found")


@app.get("/products/{product_id}")
def get_product(product_id: str):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@app.post("/products/{product_id}/decrement-stock")
def decrement_stock(product_id: str):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    product["stock"] = max(product["stock"] - 1, 0)
    return product
