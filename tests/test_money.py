"""Tests for money helpers"""
from decimal import Decimal

import pytest

from agricoventas.services.money import format_money, round_money, to_decimal, to_float, try_decimal


@pytest.mark.parametrize("value, expected", [
    (0.1, Decimal("0.1")),
    ("12.50", Decimal("12.50")),
    (7, Decimal("7")),
    (Decimal("3.3"), Decimal("3.3")),
])
def test_try_decimal_numbers(value, expected):
    """Numbers and numeric strings convert exactly"""
    assert try_decimal(value) == expected


@pytest.mark.parametrize("value", [None, True, "abc", float("inf"), float("nan"), "NaN", [1]])
def test_try_decimal_rejects(value):
    """Non-numbers and non-finite values give None"""
    assert try_decimal(value) is None


def test_to_decimal_defaults_to_zero():
    """Invalid input falls back to zero"""
    assert to_decimal("garbage") == Decimal("0")


def test_round_money():
    """Rounding is half-up to cents or units"""
    assert round_money("2.345") == Decimal("2.35")
    assert round_money("2500.5", to_int=True) == Decimal("2501")


@pytest.mark.parametrize("value, currency, expected", [
    (Decimal("7000"), "COP", "$7,000"),
    (Decimal("1234.5"), "USD", "$1,234.50"),
    (Decimal("10"), "EUR", "€10.00"),
    (Decimal("10"), "XYZ", "10.00 XYZ"),
])
def test_format_money(value, currency, expected):
    """Formatting follows the currency's precision and symbol"""
    assert format_money(value, currency) == expected


def test_float_boundary():
    """Exact arithmetic stays Decimal until converted"""
    total = Decimal("0.10") * 3
    assert total == Decimal("0.30")
    assert to_float(total) == pytest.approx(0.3)
