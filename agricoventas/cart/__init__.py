"""Cart package: models, persistence codec, store and backend client."""
from .models import Cart, CartLine, LineInput, StockBound
from .store import CartStore, create_cart_store

__all__ = [
    "Cart",
    "CartLine",
    "CartStore",
    "LineInput",
    "StockBound",
    "create_cart_store",
]
