"""Decimal helpers for quetzal amounts."""
from decimal import Decimal, ROUND_HALF_UP, ROUND_FLOOR
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, floats, strings and None to Decimal (None -> 0)."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value))


def money(value: Any) -> Decimal:
    """Round to cents, half up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def floor_int(value: Any) -> int:
    return int(to_decimal(value).to_integral_value(rounding=ROUND_FLOOR))


def round_int(value: Any) -> int:
    return int(to_decimal(value).to_integral_value(rounding=ROUND_HALF_UP))


def format_quetzales(value: Any) -> str:
    return f"Q{money(value):.2f}"
