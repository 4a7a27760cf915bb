"""
Unit Tests - Numeric Normalization
"""
import math
from decimal import Decimal

import pytest

from sales_analytics.analytics.numbers import (
    require_number,
    round_half_up,
    to_month,
    to_nullable_number,
    to_number,
    to_year,
)


class _FloatLike:
    def __float__(self):
        return 12.5


class TestToNumber:
    """Tests for to_number"""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (3, 3.0),
            (2.5, 2.5),
            (" 42.1 ", 42.1),
            (Decimal("10.25"), 10.25),
            (_FloatLike(), 12.5),
        ],
    )
    def test_converts_supported_inputs(self, value, expected):
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", math.nan, math.inf, "inf", True, object()])
    def test_falls_back_without_raising(self, value):
        assert to_number(value) == 0.0
        assert to_number(value, fallback=-1.0) == -1.0

    def test_nullable_variant_returns_none(self):
        assert to_nullable_number("n/a") is None
        assert to_nullable_number(Decimal("NaN")) is None
        assert to_nullable_number("7") == 7.0

    def test_require_number_raises_with_message(self):
        with pytest.raises(ValueError, match="direct_sales"):
            require_number(None, "direct_sales is required")


class TestYearAndMonth:
    """Tests for SQL year/month projections"""

    def test_year_from_driver_types(self):
        assert to_year(2024) == 2024
        assert to_year("2023") == 2023
        assert to_year(Decimal("2022")) == 2022
        assert to_year(2021.0) == 2021

    def test_year_out_of_range_is_discarded(self):
        assert to_year(1899) is None
        assert to_year(2201) is None
        assert to_year(None) is None

    def test_month_bounds(self):
        assert to_month("03") == 3
        assert to_month(0) is None
        assert to_month(13) is None


def test_round_half_up():
    assert round_half_up(0.00005, 4) == 0.0001
    assert round_half_up(2.5, 0) == 3.0
    assert round_half_up(-2.5, 0) == -2.0
    assert round_half_up(10.0, 4) == 10.0
