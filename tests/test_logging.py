"""Tests for logging helpers"""
from agricoventas.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging


def test_get_logger_is_cached():
    """The same name returns the same logger"""
    assert get_logger("agricoventas.cart") is get_logger("agricoventas.cart")


def test_sanitize_id():
    """IDs are truncated and stripped of control characters"""
    assert sanitize_id_for_logging("product-123456") == "product-"
    assert sanitize_id_for_logging("a\nb") == "a\\nb"
    assert sanitize_id_for_logging(None) == "N/A"
    assert sanitize_id_for_logging(0) == "0"


def test_sanitize_string():
    """Long strings are cut and forged newlines escaped"""
    assert sanitize_string_for_logging("x" * 60, max_length=10) == "x" * 10 + "..."
    assert sanitize_string_for_logging("ok\r\nINFO fake") == "ok\\r\\nINFO fake"
    assert sanitize_string_for_logging("") == "N/A"
