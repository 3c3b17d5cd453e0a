import os

API_BASE = os.getenv("API_BASE", "http://localhost:5000").rstrip("/")

# Publishing replaces STOREFRONT_ADMIN_ID; the placeholder means "not published yet".
ADMIN_ID_PLACEHOLDER = "69451fc63c5a69f1befad942"
STOREFRONT_ADMIN_ID = os.getenv("STOREFRONT_ADMIN_ID", ADMIN_ID_PLACEHOLDER).strip()
APP_INFO_URL = os.getenv("APP_INFO_URL", f"{API_BASE}/api/admin/app-info")

SNAPSHOT_SOURCE = os.getenv("SNAPSHOT_SOURCE", "form").strip().lower()  # "form" or "dynamic"
SNAPSHOT_TIMEOUT = float(os.getenv("SNAPSHOT_TIMEOUT", "15"))
POLL_SECONDS = float(os.getenv("POLL_SECONDS", "30"))

GST_PERCENT = float(os.getenv("GST_PERCENT", "18"))
SHIPPING_FEE = float(os.getenv("SHIPPING_FEE", "5.99"))
FREE_SHIPPING_THRESHOLD = float(os.getenv("FREE_SHIPPING_THRESHOLD", "100"))
MAX_CART_UNITS = int(os.getenv("MAX_CART_UNITS", "10"))
