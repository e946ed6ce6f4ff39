"""
Money Utilities - Safe Decimal operations for monetary values.

Prices and cart totals stay Decimal internally; floats appear only at
the JSON boundary of the staging request.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

Number = Union[str, int, float, Decimal]

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")

# Precision for integer currencies (NGN prices are whole naira in the catalogue)
INTEGER_PRECISION = Decimal("1")

CURRENCY_SYMBOLS = {
    "NGN": "₦",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}

INTEGER_CURRENCIES = {"NGN"}


def to_decimal(value: Union[Number, None]) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    try:
        if isinstance(value, float):
            # Via str to keep the literal the caller saw
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def parse_price(value: object) -> Decimal:
    """
    Strict conversion for persisted or caller-supplied prices.

    Unlike to_decimal, garbage is an error here: a snapshot carrying an
    unreadable price must be rejected, not silently zeroed.

    Raises:
        ValueError: if the value is not a finite, non-negative number
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, float, Decimal)):
        raise ValueError(f"price must be numeric, got {type(value).__name__}")
    try:
        result = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except InvalidOperation as e:
        raise ValueError(f"price is not a number: {value!r}") from e
    if not result.is_finite() or result < 0:
        raise ValueError(f"price must be a non-negative number, got {value!r}")
    return result


def round_money(value: Number, to_int: bool = False) -> Decimal:
    """Round monetary value to 2 places, or to whole units when to_int."""
    decimal_value = to_decimal(value)
    precision = INTEGER_PRECISION if to_int else MONEY_PRECISION
    return decimal_value.quantize(precision, rounding=ROUND_HALF_UP)


def format_money(value: Number, currency: str = "NGN") -> str:
    """
    Format monetary value with currency symbol.

    Args:
        value: Value to format
        currency: Currency code (NGN, USD, EUR, ...)

    Returns:
        Formatted string, e.g. "₦1,000" or "$12.50"
    """
    decimal_value = to_decimal(value)
    symbol = CURRENCY_SYMBOLS.get(currency, currency)

    if currency in INTEGER_CURRENCIES:
        formatted = f"{int(round_money(decimal_value, to_int=True)):,}"
    else:
        formatted = f"{round_money(decimal_value):,.2f}"

    if currency in CURRENCY_SYMBOLS:
        return f"{symbol}{formatted}"
    return f"{formatted} {symbol}"


def to_json_number(value: Number) -> Union[int, float]:
    """
    Convert to a JSON number for external APIs.

    Whole amounts are sent as integers (the staging server parses them
    with parseInt); fractional amounts as floats.
    """
    decimal_value = to_decimal(value)
    if decimal_value == decimal_value.to_integral_value():
        return int(decimal_value)
    return float(decimal_value)


def multiply(value: Number, factor: Number) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)
