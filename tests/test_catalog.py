"""Tests for catalog product translation"""
from decimal import Decimal

import pytest

from agricoventas.cart import StockBound
from agricoventas.catalog import DEFAULT_SELLER_NAME, line_input_from_product
from agricoventas.errors import InvalidLineInput


def test_basic_translation(sample_product):
    """Product fields map onto the cart candidate"""
    candidate = line_input_from_product(sample_product, unlimited_sentinel=None)

    assert candidate.product_id == "product-123"
    assert candidate.name == "Café orgánico"
    assert candidate.price == Decimal("25000")
    assert candidate.unit_measure == "kg"
    assert candidate.stock == StockBound.finite(12)
    assert candidate.image_url == "https://cdn.example.com/cafe-2.jpg"
    assert candidate.seller_name == "Ana Gómez"


def test_available_quantity_fallback(sample_product):
    """availableQuantity is used when stockQuantity is missing"""
    del sample_product["stockQuantity"]
    sample_product["availableQuantity"] = 4

    assert line_input_from_product(sample_product, unlimited_sentinel=None).stock.limit == 4


def test_numeric_string_stock(sample_product):
    """Stock given as a numeric string is parsed"""
    sample_product["stockQuantity"] = "7 kg"

    assert line_input_from_product(sample_product, unlimited_sentinel=None).stock.limit == 7


def test_numeric_field_beats_string(sample_product):
    """A numeric availableQuantity wins over a string stockQuantity"""
    sample_product["stockQuantity"] = "20"
    sample_product["availableQuantity"] = 3

    assert line_input_from_product(sample_product, unlimited_sentinel=None).stock.limit == 3


@pytest.mark.parametrize("stock", [None, "n/a", -2, 0])
def test_no_stock(sample_product, stock):
    """Unusable stock values resolve to zero"""
    sample_product["stockQuantity"] = stock

    candidate = line_input_from_product(sample_product, unlimited_sentinel=None)

    assert candidate.stock == StockBound.finite(0)
    assert not candidate.stock.is_available


def test_unlimited_sentinel(sample_product):
    """The configured sentinel becomes an unbounded stock"""
    sample_product["stockQuantity"] = 999

    assert line_input_from_product(sample_product, unlimited_sentinel=999).stock.is_unbounded
    assert line_input_from_product(sample_product, unlimited_sentinel=None).stock.limit == 999


def test_first_image_without_primary(sample_product):
    """Without a primary image the first one is used"""
    for image in sample_product["images"]:
        image["isPrimary"] = False

    assert line_input_from_product(sample_product).image_url == "https://cdn.example.com/cafe-1.jpg"


def test_no_images(sample_product):
    """Products without images have no image URL"""
    sample_product["images"] = []

    assert line_input_from_product(sample_product).image_url is None


@pytest.mark.parametrize("seller, expected", [
    ({"firstName": "Ana", "lastName": None}, "Ana"),
    ({"firstName": "", "lastName": "", "username": "anagomez"}, "anagomez"),
    ({}, DEFAULT_SELLER_NAME),
    (None, DEFAULT_SELLER_NAME),
])
def test_seller_name(sample_product, seller, expected):
    """Seller display name falls back to username, then a default"""
    sample_product["seller"] = seller

    assert line_input_from_product(sample_product).seller_name == expected


def test_default_unit_measure(sample_product):
    """Missing unit measure defaults to unidad"""
    del sample_product["unitMeasure"]

    assert line_input_from_product(sample_product).unit_measure == "unidad"


def test_numeric_id(sample_product):
    """Numeric ids are accepted as strings"""
    sample_product["id"] = 42

    assert line_input_from_product(sample_product).product_id == "42"


@pytest.mark.parametrize("product", [{}, {"id": ""}, {"id": "P1", "price": -5}])
def test_invalid_products(product):
    """Products without id or with a bad price are rejected"""
    with pytest.raises(InvalidLineInput):
        line_input_from_product(product)


def test_store_integration(store, sample_product):
    """A translated product can go straight into the cart"""
    sample_product["stockQuantity"] = 1
    candidate = line_input_from_product(sample_product, unlimited_sentinel=None)

    assert store.add_item(candidate) is True
    assert store.add_item(candidate) is False
