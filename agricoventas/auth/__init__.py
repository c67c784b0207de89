"""Auth session signal consumed by the cart."""
from .session import AuthSession, TokenSession

__all__ = [
    "AuthSession",
    "TokenSession",
]
