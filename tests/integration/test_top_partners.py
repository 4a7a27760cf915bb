"""
Integration Tests - Top Partners
"""
from datetime import datetime

import pytest

from sales_analytics.analytics.exceptions import InvalidParameterError
from sales_analytics.analytics.top_partners import (
    TopPartnersOptions,
    build_top_partners_payload,
    normalize_limit,
    raw_fetch_limit,
)

INDIRECT = ("Permanent direct", "Opération direct")


@pytest.fixture
def partner_rows(seed):
    seed([
        {"supplier": "Dûpont", "sales_altona": 100.0, "quantity": 1.0, "delivery_date": datetime(2023, 5, 1)},
        {"supplier": "dupont", "sales_altona": 50.0, "quantity": 2.0, "delivery_date": datetime(2024, 2, 1)},
        # sales_altona is zero, the partner view falls back to direct_sales
        {"supplier": "DUPONT ", "direct_sales": 30.0, "quantity": 1.0, "delivery_date": datetime(2024, 3, 1)},
        {"supplier": "Acme", "sales_altona": 150.0, "quantity": 10.0, "delivery_date": datetime(2024, 1, 10)},
        {"supplier": "Zeta", "sales_altona": 20.0, "quantity": 1.0, "delivery_date": datetime(2022, 7, 1)},
        {"supplier": "   ", "sales_altona": 1000.0, "quantity": 50.0, "delivery_date": datetime(2024, 1, 1)},
    ])


def options(**overrides):
    values = {"indirect_order_types": INDIRECT}
    values.update(overrides)
    return TopPartnersOptions(**values)


class TestTopPartners:
    """Tests for build_top_partners_payload"""

    async def test_variants_are_ranked_together(self, store, partner_rows):
        payload = await build_top_partners_payload(store, options())

        assert [p.partner_name for p in payload.partners] == ["dupont", "Acme", "Zeta"]
        assert [p.rank for p in payload.partners] == [1, 2, 3]

        dupont = payload.partners[0]
        assert dupont.total_sales_value == 180
        assert dupont.total_quantity == 4
        assert [(y.year, y.total_sales_value, y.total_quantity) for y in dupont.years] == [
            (2023, 100, 1),
            (2024, 80, 3),
        ]

        assert payload.available_years == [2022, 2023, 2024]
        assert payload.totals.sales_value == 350
        assert payload.totals.quantity == 15
        assert payload.kind == "supplier"
        assert payload.metadata.limit == 5

    async def test_order_by_quantity(self, store, partner_rows):
        payload = await build_top_partners_payload(store, options(order_by="quantity"))
        assert [p.partner_name for p in payload.partners] == ["Acme", "dupont", "Zeta"]

    async def test_limit_applies_after_folding(self, store, partner_rows):
        payload = await build_top_partners_payload(store, options(limit=1))

        assert [p.partner_name for p in payload.partners] == ["dupont"]
        assert payload.totals.sales_value == 180
        assert payload.available_years == [2023, 2024]

    async def test_year_bounds(self, store, partner_rows):
        payload = await build_top_partners_payload(store, options(min_year=2024, max_year=2024))

        assert [(p.partner_name, p.total_sales_value) for p in payload.partners] == [
            ("Acme", 150),
            ("dupont", 80),
        ]
        assert payload.metadata.min_year == 2024
        assert payload.available_years == [2024]

    async def test_client_kind_uses_billing_sign(self, store, seed):
        seed([
            {"billing_sign": "Client B", "sales_altona": 10.0},
            {"billing_sign": "client-b", "sales_altona": 5.0},
            {"billing_sign": None, "sales_altona": 70.0},
        ])

        payload = await build_top_partners_payload(store, options(kind="client"))

        assert len(payload.partners) == 1
        assert payload.partners[0].partner_name == "Client B"
        assert payload.partners[0].total_sales_value == 15

    async def test_sales_channels(self, store, seed):
        seed([
            {"supplier": "Indy", "order_type": "Permanent direct", "direct_sales": 500.0, "sales_altona": 7.0},
            {"supplier": "Opé", "order_type": "Opération direct", "direct_sales": 60.0},
            {"supplier": "Acme", "order_type": "Commande", "sales_altona": 150.0, "direct_sales": 1.0},
        ])

        indirect = await build_top_partners_payload(store, options(sales_channel="indirect"))
        assert [(p.partner_name, p.total_sales_value) for p in indirect.partners] == [("Indy", 500), ("Opé", 60)]

        direct = await build_top_partners_payload(store, options(sales_channel="direct"))
        assert [(p.partner_name, p.total_sales_value) for p in direct.partners] == [("Acme", 150)]
        assert direct.metadata.sales_channel == "direct"

    async def test_empty_store(self, store):
        payload = await build_top_partners_payload(store, options())

        assert payload.partners == []
        assert payload.available_years == []
        assert payload.totals.sales_value == 0

    async def test_invalid_year_bounds(self, store):
        with pytest.raises(InvalidParameterError):
            await build_top_partners_payload(store, options(min_year=1800))
        with pytest.raises(InvalidParameterError, match="minYear"):
            await build_top_partners_payload(store, options(min_year=2024, max_year=2020))


def test_limits():
    assert normalize_limit(None) == 5
    assert normalize_limit(100) == 25
    assert raw_fetch_limit(1) == 4
    assert raw_fetch_limit(25) == 100
