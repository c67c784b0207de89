"""Environment-driven settings."""
import os
from typing import Optional


def _optional_int(name: str) -> Optional[int]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


# Storage keys (the browser client used these localStorage keys)
CART_STORAGE_KEY = os.environ.get("AGRICOVENTAS_CART_KEY", "cart")
AUTH_TOKEN_KEY = os.environ.get("AGRICOVENTAS_AUTH_TOKEN_KEY", "auth_token")

# Storage backend: memory, file or redis
STORAGE_BACKEND = os.environ.get("AGRICOVENTAS_STORAGE", "memory").lower()
STORAGE_PATH = os.environ.get("AGRICOVENTAS_STORAGE_PATH", "agricoventas-storage.json")
REDIS_NAMESPACE = os.environ.get("AGRICOVENTAS_REDIS_NAMESPACE", "agricoventas:")

# Backend REST API
BACKEND_URL = os.environ.get("AGRICOVENTAS_BACKEND_URL", "http://localhost:3001/api")
API_TIMEOUT = float(os.environ.get("AGRICOVENTAS_API_TIMEOUT", "10"))

# Presentation
CURRENCY = os.environ.get("AGRICOVENTAS_CURRENCY", "COP").upper()

# Catalog stock value meaning "no stock limit"; unset means every stock is finite
UNLIMITED_STOCK_SENTINEL = _optional_int("AGRICOVENTAS_UNLIMITED_STOCK_SENTINEL")
