"""
Integration Tests - Sales Listing
"""
from datetime import datetime

from sales_analytics.analytics.sales_listing import build_sales_page


class TestSalesListing:
    """Tests for build_sales_page"""

    async def test_pages_over_latest_rows(self, store, seed):
        seed([
            {"product_reference": f"REF-{i}", "direct_sales": float(i), "commission_altona": 1.0,
             "total_net_margin_eur": 0.5, "delivery_date": datetime(2024, 1, i)}
            for i in range(1, 6)
        ])

        page = await build_sales_page(store, page=2, page_size=2, scope_limit=4)

        assert page.total_rows == 5
        assert page.scope_count == 4
        assert page.page_count == 2
        assert [row.product_reference for row in page.rows] == ["REF-3", "REF-2"]
        assert page.rows[0].delivery_date == "2024-01-03T00:00:00.000Z"
        assert page.aggregates.direct_sales == 2 + 3 + 4 + 5
        assert page.aggregates.commission_altona == 4
        assert page.aggregates.total_net_margin_eur == 2

    async def test_page_past_the_end_is_clamped(self, store, seed):
        seed([{"product_reference": "A"}, {"product_reference": "B"}, {"product_reference": "C"}])

        page = await build_sales_page(store, page=10, page_size=2)

        assert page.page == 2
        assert [row.product_reference for row in page.rows] == ["A"]

    async def test_nullable_columns(self, store, seed):
        seed([{"billing_sign": None, "quantity": None}])

        page = await build_sales_page(store)

        row = page.rows[0]
        assert row.billing_sign is None
        assert row.quantity is None
        assert row.transaction_id == 1

    async def test_empty_store(self, store):
        page = await build_sales_page(store)

        assert page.rows == []
        assert page.page == 1
        assert page.page_count == 1
        assert page.aggregates.direct_sales == 0
