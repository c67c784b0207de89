"""Agricoventas marketplace client: shopping cart core."""

__version__ = "0.1.0"
