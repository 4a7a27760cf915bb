"""
Numeric Normalization

Helpers that turn values coming from the store driver, spreadsheets or query
strings (ints, floats, numeric strings, Decimal and other objects exposing
``__float__``, None) into finite floats.
"""

import math
from decimal import Decimal
from typing import Any, Optional

MIN_ALLOWED_YEAR = 1900
MAX_ALLOWED_YEAR = 2200


def is_decimal_like(value: Any) -> bool:
    """True for Decimal and any object with a no-argument float conversion."""
    if isinstance(value, (bool, str, bytes)):
        return False
    return isinstance(value, Decimal) or hasattr(type(value), "__float__")


def to_number(value: Any, fallback: float = 0.0) -> float:
    """
    Convert an arbitrary value to a finite float.

    Args:
        value: int, float, numeric string, Decimal-like object or None
        fallback: Returned when the value is absent or cannot be converted

    Returns:
        A finite float, or ``fallback``. Never raises.
    """
    if value is None or isinstance(value, bool):
        return fallback

    if isinstance(value, (int, float)):
        try:
            numeric = float(value)
        except OverflowError:
            return fallback
        return numeric if math.isfinite(numeric) else fallback

    if isinstance(value, str):
        trimmed = value.strip()
        if not trimmed:
            return fallback
        try:
            numeric = float(trimmed)
        except ValueError:
            return fallback
        return numeric if math.isfinite(numeric) else fallback

    if is_decimal_like(value):
        try:
            numeric = float(value)
        except (ArithmeticError, TypeError, ValueError):
            return fallback
        return numeric if math.isfinite(numeric) else fallback

    return fallback


def to_nullable_number(value: Any) -> Optional[float]:
    """Like :func:`to_number` but returns None when conversion is not possible."""
    numeric = to_number(value, math.nan)
    return numeric if math.isfinite(numeric) else None


def require_number(value: Any, message: str) -> float:
    """Convert to a finite float or raise ValueError(message)."""
    numeric = to_nullable_number(value)
    if numeric is None:
        raise ValueError(message)
    return numeric


def in_allowed_year_range(year: int) -> bool:
    return MIN_ALLOWED_YEAR <= year <= MAX_ALLOWED_YEAR


def to_year(value: Any) -> Optional[int]:
    """
    Normalize a year produced by a SQL EXTRACT/strftime projection.

    Drivers return int, Decimal, float or text depending on the dialect.
    Values outside 1900-2200 are discarded.
    """
    numeric = to_nullable_number(value)
    if numeric is None:
        return None
    year = int(numeric)
    return year if in_allowed_year_range(year) else None


def to_month(value: Any) -> Optional[int]:
    numeric = to_nullable_number(value)
    if numeric is None:
        return None
    month = int(numeric)
    return month if 1 <= month <= 12 else None


def round_half_up(value: float, precision: int = 4) -> float:
    """Round to ``precision`` decimals with halves rounded towards +infinity."""
    factor = 10 ** precision
    return math.floor(value * factor + 0.5) / factor
