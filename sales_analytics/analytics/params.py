"""
Query Parameter Parsing

Raw query-string values are validated here, before any query runs.
Absent or blank input falls back to a documented default; non-empty input
that cannot be understood raises InvalidParameterError.
"""

from typing import Optional, Sequence, Tuple, Union

from sales_analytics.analytics.exceptions import (
    InvalidParameterError,
    InvalidPartnerKindError,
)
from sales_analytics.analytics.numbers import (
    MAX_ALLOWED_YEAR,
    MIN_ALLOWED_YEAR,
    in_allowed_year_range,
    to_nullable_number,
)

ALL = "all"

SALES_CHANNELS = ("all", "direct", "indirect")
TIME_VIEWS = ("yearly", "monthly")
PARTNER_ORDER_BY = ("sales", "quantity")
COMMERCIAL_ORDER_BY = ("sales", "quantity", "name")

DEFAULT_TOP_LIMIT = 5
MAX_TOP_LIMIT = 25
MAX_COMMERCIAL_LIMIT = 250

DEFAULT_PAGE = 1
MAX_PAGE = 10_000
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500

YearFilter = Union[int, str]


def _is_blank(raw: Optional[str]) -> bool:
    return raw is None or not raw.strip()


def _parse_number(raw: str, parameter: str) -> float:
    numeric = to_nullable_number(raw)
    if numeric is None:
        raise InvalidParameterError(
            f"Invalid {parameter} parameter. Expected a finite number, received '{raw}'.",
            parameter=parameter,
        )
    return numeric


def parse_integer(raw: str, parameter: str) -> int:
    """Parse a whole number; fractional or non-numeric input is rejected."""
    numeric = _parse_number(raw, parameter)
    if not numeric.is_integer():
        raise InvalidParameterError(
            f"Invalid {parameter} parameter. Expected an integer, received '{raw}'.",
            parameter=parameter,
        )
    return int(numeric)


def _checked_year(raw: str, parameter: str) -> int:
    try:
        year = parse_integer(raw, parameter)
    except InvalidParameterError:
        year = None
    if year is None or not in_allowed_year_range(year):
        raise InvalidParameterError(
            f"Invalid {parameter} parameter. Use a four-digit year between "
            f"{MIN_ALLOWED_YEAR} and {MAX_ALLOWED_YEAR}, received '{raw}'.",
            parameter=parameter,
        )
    return year


def parse_year(raw: Optional[str]) -> YearFilter:
    """
    Year filter of the most-sold-products view.

    Returns:
        The year as int, or the "all" sentinel for absent/blank/"all" input
    """
    if _is_blank(raw) or raw.strip().lower() == ALL:
        return ALL
    return _checked_year(raw.strip(), "year")


def parse_optional_year(raw: Optional[str], parameter: str = "year") -> Optional[int]:
    """Year or None; "all" is accepted as None."""
    if _is_blank(raw) or raw.strip().lower() == ALL:
        return None
    return _checked_year(raw.strip(), parameter)


def parse_year_bounds(
    raw_min: Optional[str],
    raw_max: Optional[str],
) -> Tuple[Optional[int], Optional[int]]:
    """Inclusive minYear/maxYear pair; minYear may not exceed maxYear."""
    min_year = None if _is_blank(raw_min) else _checked_year(raw_min.strip(), "minYear")
    max_year = None if _is_blank(raw_max) else _checked_year(raw_max.strip(), "maxYear")
    if min_year is not None and max_year is not None and min_year > max_year:
        raise InvalidParameterError(
            f"minYear ({min_year}) must be less than or equal to maxYear ({max_year}).",
            parameter="minYear",
        )
    return min_year, max_year


def parse_category(raw: Optional[str]) -> str:
    if _is_blank(raw) or raw.strip().lower() == ALL:
        return ALL
    return raw.strip()


def _parse_choice(raw: Optional[str], choices: Sequence[str], default: str, parameter: str) -> str:
    if _is_blank(raw):
        return default
    normalized = raw.strip().lower()
    if normalized in choices:
        return normalized
    supported = ", ".join(f"'{choice}'" for choice in choices)
    raise InvalidParameterError(
        f"Invalid {parameter} parameter. Supported values are {supported}.",
        parameter=parameter,
    )


def parse_sales_channel(raw: Optional[str]) -> str:
    return _parse_choice(raw, SALES_CHANNELS, "all", "salesChannel")


def parse_view(raw: Optional[str]) -> str:
    return _parse_choice(raw, TIME_VIEWS, "yearly", "view")


def parse_order_by(raw: Optional[str], choices: Sequence[str] = PARTNER_ORDER_BY) -> str:
    return _parse_choice(raw, choices, "sales", "orderBy")


def parse_partner_kind(raw: Optional[str]) -> str:
    """supplier(s) or client(s); blank means supplier."""
    if _is_blank(raw):
        return "supplier"
    normalized = raw.strip().lower()
    if normalized in ("supplier", "suppliers"):
        return "supplier"
    if normalized in ("client", "clients"):
        return "client"
    raise InvalidPartnerKindError(raw)


def parse_limit(raw: Optional[str], maximum: int, default: Optional[int] = None) -> Optional[int]:
    """
    Positive result limit.

    Blank input yields ``default``. Fractions are truncated, values above
    ``maximum`` are clamped and anything below 1 is rejected.
    """
    if _is_blank(raw):
        return default
    limit = int(_parse_number(raw.strip(), "limit"))
    if limit <= 0:
        raise InvalidParameterError(
            f"Numeric parameters must be positive integers. Received '{limit}'.",
            parameter="limit",
        )
    return min(limit, maximum)


def parse_months_ago(raw: Optional[str]) -> int:
    if _is_blank(raw):
        return 1
    try:
        months_ago = parse_integer(raw.strip(), "monthsAgo")
    except InvalidParameterError:
        months_ago = 0
    if months_ago < 1:
        raise InvalidParameterError(
            "monthsAgo must be a positive integer (>= 1).",
            parameter="monthsAgo",
        )
    return months_ago


def parse_debug(raw: Optional[str]) -> bool:
    return raw is not None and raw.strip().lower() in ("1", "true")


def parse_bounded_integer(
    raw: Optional[str],
    default: int,
    minimum: int,
    maximum: int,
    parameter: str,
) -> int:
    """Integer clamped into ``[minimum, maximum]``; blank yields ``default``."""
    value = default if _is_blank(raw) else parse_integer(raw.strip(), parameter)
    return max(minimum, min(maximum, value))


def parse_page(raw_page: Optional[str], raw_page_size: Optional[str]) -> Tuple[int, int]:
    page = parse_bounded_integer(raw_page, DEFAULT_PAGE, 1, MAX_PAGE, "page")
    page_size = parse_bounded_integer(raw_page_size, DEFAULT_PAGE_SIZE, 1, MAX_PAGE_SIZE, "pageSize")
    return page, page_size
