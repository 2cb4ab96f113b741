# app/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

# memory | sql | redis
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./scan_cart.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/2")
CELERY_TASK_ALWAYS_EAGER = os.getenv("CELERY_TASK_ALWAYS_EAGER", "0") == "1"
PRODUCT_SERVICE_URL = os.getenv("PRODUCT_SERVICE_URL", "http://product-service:8000")

CART_PARTITION = os.getenv("CART_PARTITION", "global/items")
CART_MAX_RETRIES = int(os.getenv("CART_MAX_RETRIES", 10))
CART_RETRY_WAIT_MAX = float(os.getenv("CART_RETRY_WAIT_MAX", 0.2))
# reject | increment
DUPLICATE_POLICY = os.getenv("DUPLICATE_POLICY", "reject")
DECREMENT_STOCK_ON_SCAN = os.getenv("DECREMENT_STOCK_ON_SCAN", "0") == "1"
RECENT_WINDOW_SECONDS = int(os.getenv("RECENT_WINDOW_SECONDS", 5))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
