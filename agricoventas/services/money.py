"""
Money Utilities - Safe Decimal operations for monetary values.

Avoids float precision issues by using Decimal throughout. Cart totals
stay exact; rounding happens only when formatting for display.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Optional, Union

Amount = Union[str, int, float, Decimal]

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")

# Precision for integer currencies (COP, CLP, etc.)
INTEGER_PRECISION = Decimal("1")

CURRENCY_SYMBOLS = {
    "COP": "$",
    "USD": "$",
    "EUR": "€",
    "MXN": "$",
    "CLP": "$",
    "PEN": "S/",
}

# Currencies displayed without decimals
INTEGER_CURRENCIES = {"COP", "CLP"}


def try_decimal(value: Union[Amount, None]) -> Optional[Decimal]:
    """
    Convert a value to a finite Decimal, or None if it is not a number.

    Booleans are rejected even though they are ints.
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, float):
            # Convert via string to avoid float precision issues
            result = Decimal(str(value))
        elif isinstance(value, (int, str)):
            result = Decimal(value)
        else:
            return None
    except (InvalidOperation, ValueError, TypeError):
        return None

    if not result.is_finite():
        return None
    return result


def to_decimal(value: Union[Amount, None]) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    result = try_decimal(value)
    return Decimal("0") if result is None else result


def round_money(value: Amount, to_int: bool = False) -> Decimal:
    """
    Round monetary value to appropriate precision.

    Args:
        value: Value to round
        to_int: If True, round to integer (for COP, CLP, etc.)

    Returns:
        Rounded Decimal value
    """
    decimal_value = to_decimal(value)
    precision = INTEGER_PRECISION if to_int else MONEY_PRECISION
    return decimal_value.quantize(precision, rounding=ROUND_HALF_UP)


def format_money(value: Amount, currency: str = "COP") -> str:
    """
    Format monetary value with currency symbol.

    Args:
        value: Value to format
        currency: Currency code (COP, USD, EUR, etc.)

    Returns:
        Formatted string with currency symbol
    """
    decimal_value = to_decimal(value)
    currency = currency.upper()
    symbol = CURRENCY_SYMBOLS.get(currency, currency)

    if currency in INTEGER_CURRENCIES:
        formatted = f"{int(round_money(decimal_value, to_int=True)):,}"
    else:
        formatted = f"{round_money(decimal_value):,.2f}"

    if currency in CURRENCY_SYMBOLS:
        return f"{symbol}{formatted}"
    return f"{formatted} {symbol}"


def to_float(value: Amount) -> float:
    """
    Convert Decimal to float for JSON serialization or external APIs.

    Use only at API boundaries, not for internal calculations.
    """
    return float(to_decimal(value))
