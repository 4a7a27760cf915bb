"""
Unit Tests - Query Parameter Parsing
"""
import pytest

from sales_analytics.analytics import params
from sales_analytics.analytics.exceptions import InvalidParameterError, InvalidPartnerKindError


class TestParseYear:
    """Tests for year parsing"""

    @pytest.mark.parametrize("raw", ["1899", "abc", "2201", "2024.5", "20 24"])
    def test_rejects_invalid_years(self, raw):
        with pytest.raises(InvalidParameterError):
            params.parse_year(raw)

    @pytest.mark.parametrize("raw", ["all", "ALL", None, "", "  "])
    def test_all_sentinel(self, raw):
        assert params.parse_year(raw) == params.ALL

    def test_valid_year(self):
        assert params.parse_year(" 2024 ") == 2024
        assert params.parse_year("1900") == 1900

    def test_optional_year(self):
        assert params.parse_optional_year(None) is None
        assert params.parse_optional_year("all") is None
        assert params.parse_optional_year("2023") == 2023

    def test_year_bounds(self):
        assert params.parse_year_bounds("2022", "2024") == (2022, 2024)
        assert params.parse_year_bounds(None, "") == (None, None)
        with pytest.raises(InvalidParameterError, match="minYear"):
            params.parse_year_bounds("2024", "2023")
        with pytest.raises(InvalidParameterError) as exc_info:
            params.parse_year_bounds(None, "3000")
        assert exc_info.value.parameter == "maxYear"


class TestChoices:
    """Tests for enumerated parameters"""

    def test_sales_channel(self):
        assert params.parse_sales_channel(None) == "all"
        assert params.parse_sales_channel("DIRECT") == "direct"
        with pytest.raises(InvalidParameterError, match="salesChannel"):
            params.parse_sales_channel("both")

    def test_view(self):
        assert params.parse_view("") == "yearly"
        assert params.parse_view("Monthly") == "monthly"
        with pytest.raises(InvalidParameterError):
            params.parse_view("weekly")

    def test_order_by_depends_on_choices(self):
        assert params.parse_order_by(None) == "sales"
        assert params.parse_order_by("name", params.COMMERCIAL_ORDER_BY) == "name"
        with pytest.raises(InvalidParameterError):
            params.parse_order_by("name", params.PARTNER_ORDER_BY)

    @pytest.mark.parametrize("raw, expected", [
        (None, "supplier"),
        ("suppliers", "supplier"),
        ("Client", "client"),
        ("clients", "client"),
    ])
    def test_partner_kind(self, raw, expected):
        assert params.parse_partner_kind(raw) == expected

    def test_unknown_partner_kind(self):
        with pytest.raises(InvalidPartnerKindError):
            params.parse_partner_kind("vendor")

    def test_category(self):
        assert params.parse_category(" Boissons ") == "Boissons"
        assert params.parse_category("All") == params.ALL


class TestNumericParameters:
    """Tests for limits, months and paging"""

    def test_limit(self):
        assert params.parse_limit(None, maximum=25) is None
        assert params.parse_limit("", maximum=25, default=5) == 5
        assert params.parse_limit("3.7", maximum=25) == 3
        assert params.parse_limit("300", maximum=25) == 25

    @pytest.mark.parametrize("raw", ["0", "-2", "abc"])
    def test_limit_rejected(self, raw):
        with pytest.raises(InvalidParameterError):
            params.parse_limit(raw, maximum=25)

    def test_months_ago(self):
        assert params.parse_months_ago(None) == 1
        assert params.parse_months_ago("3") == 3

    @pytest.mark.parametrize("raw", ["0", "-1", "1.5", "soon"])
    def test_months_ago_rejected(self, raw):
        with pytest.raises(InvalidParameterError, match="monthsAgo"):
            params.parse_months_ago(raw)

    def test_page_clamped(self):
        assert params.parse_page(None, None) == (params.DEFAULT_PAGE, params.DEFAULT_PAGE_SIZE)
        assert params.parse_page("0", "1000") == (1, params.MAX_PAGE_SIZE)
        assert params.parse_page("99999", "10") == (params.MAX_PAGE, 10)

    def test_page_rejects_text(self):
        with pytest.raises(InvalidParameterError):
            params.parse_page("two", None)

    def test_debug_flag(self):
        assert params.parse_debug("1")
        assert params.parse_debug("TRUE")
        assert not params.parse_debug("0")
        assert not params.parse_debug(None)
