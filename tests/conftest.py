"""Pytest configuration and fixtures"""
import os
import pytest
from unittest.mock import Mock

# Keep test output quiet and deterministic
os.environ.setdefault("LOG_LEVEL", "WARNING")

from agricoventas.auth.session import TokenSession
from agricoventas.cart import CartStore, LineInput
from agricoventas.storage import MemoryStorage


@pytest.fixture
def storage():
    """Empty in-memory storage"""
    return MemoryStorage()


@pytest.fixture
def session(storage):
    """Logged-in token session over the shared storage"""
    session = TokenSession(storage, token_key="auth_token")
    session.login("test-token")
    yield session
    session.close()


@pytest.fixture
def store(storage, session):
    """Cart store for a logged-in user"""
    with CartStore(storage, session, storage_key="cart") as store:
        yield store


@pytest.fixture
def make_input():
    """Factory for cart candidates"""
    def _make(product_id="P1", price=1000, stock_quantity=3, **kwargs):
        kwargs.setdefault("name", f"Product {product_id}")
        kwargs.setdefault("unit_measure", "kg")
        return LineInput(product_id=product_id, price=price, stock_quantity=stock_quantity, **kwargs)

    return _make


@pytest.fixture
def sample_product():
    """Sample catalog product payload"""
    return {
        "id": "product-123",
        "name": "Café orgánico",
        "price": 25000,
        "unitMeasure": "kg",
        "stockQuantity": 12,
        "images": [
            {"imageUrl": "https://cdn.example.com/cafe-1.jpg", "isPrimary": False},
            {"imageUrl": "https://cdn.example.com/cafe-2.jpg", "isPrimary": True},
        ],
        "seller": {"firstName": "Ana", "lastName": "Gómez", "username": "anagomez"},
    }


@pytest.fixture
def mock_redis():
    """Mock Upstash Redis client backed by a dict"""
    data = {}
    client = Mock()
    client.get.side_effect = lambda key: data.get(key)
    client.set.side_effect = lambda key, value: data.__setitem__(key, value)
    client.delete.side_effect = lambda key: data.pop(key, None)
    client.data = data
    return client
