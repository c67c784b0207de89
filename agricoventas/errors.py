"""
Common Error Constants and Exceptions

Centralized error messages to avoid string duplication.
"""

# Cart line errors
ERROR_PRODUCT_ID_REQUIRED = "Product ID is required"
ERROR_PRICE_INVALID = "Price must be a non-negative number"
ERROR_QUANTITY_INVALID = "Quantity must be a positive integer"
ERROR_PRODUCT_OUT_OF_STOCK = "Product out of stock"
ERROR_STOCK_LIMIT_REACHED = "Stock limit reached"

# Persistence errors
ERROR_CART_PAYLOAD_INVALID = "Persisted cart payload is invalid"
ERROR_CART_VERSION_UNSUPPORTED = "Unsupported cart payload version"
ERROR_STORAGE_UNAVAILABLE = "Cart storage unavailable"

# Backend errors
ERROR_BACKEND_UNAVAILABLE = "Cart service unavailable"


class AgricoventasError(Exception):
    """Base class for errors raised by this package."""


class InvalidLineInput(AgricoventasError, ValueError):
    """A cart line candidate or API request failed validation."""


class StorageError(AgricoventasError):
    """A storage backend could not read or write a value."""


class CartPayloadError(AgricoventasError):
    """A persisted cart payload could not be decoded or validated."""
