"""
Integration Tests - Most Sold Products
"""
from datetime import datetime

import pytest

from sales_analytics.analytics.most_sold_products import (
    build_category_options,
    build_most_sold_products_payload,
    build_year_options,
)

BOISSONS = [("P1", 50.0), ("P2", 40.0), ("P3", 40.0), ("P4", 30.0), ("P5", 20.0), ("P6", 10.0), ("P7", 5.0)]
EPICERIE = [("E2", 15.0), ("E3", 5.0)]


@pytest.fixture
def product_rows(seed):
    rows = [
        {"product_category": "Boissons", "product_reference": ref, "quantity": qty,
         "delivery_date": datetime(2024, 2, 1)}
        for ref, qty in BOISSONS
    ]
    rows += [
        {"product_category": "Épicerie", "product_reference": ref, "quantity": qty,
         "delivery_date": datetime(2023, 9, 1)}
        for ref, qty in EPICERIE
    ]
    # One product split over two spellings of the same category
    rows += [
        {"product_category": "Épicerie", "product_reference": "E1", "quantity": 20.0,
         "delivery_date": datetime(2023, 9, 1)},
        {"product_category": "Épicerie ", "product_reference": "E1", "quantity": 5.0,
         "delivery_date": datetime(2023, 10, 1)},
        {"product_category": "  ", "product_reference": "X", "quantity": 999.0,
         "delivery_date": datetime(2024, 3, 1)},
    ]
    seed(rows)


class TestMostSoldProducts:
    """Tests for build_most_sold_products_payload"""

    async def test_top_five_per_category(self, store, product_rows):
        payload = await build_most_sold_products_payload(store)

        by_category = {}
        for row in payload.rows:
            by_category.setdefault(row.product_category, []).append(row)

        boissons = by_category["Boissons"]
        epicerie = by_category["Épicerie"]
        assert len(boissons) == 5
        assert len(epicerie) == 3

        assert [r.product_reference for r in boissons] == ["P1", "P2", "P3", "P4", "P5"]
        assert [r.rank_within_category for r in boissons] == [1, 2, 3, 4, 5]
        assert [r.product_reference for r in epicerie] == ["E1", "E2", "E3"]
        assert epicerie[0].total_quantity == 25

        assert boissons[0].category_total_quantity == 195
        assert boissons[0].share_within_category == pytest.approx(50 / 195)
        assert epicerie[0].category_total_quantity == 45

    async def test_rows_ordered_by_quantity(self, store, product_rows):
        payload = await build_most_sold_products_payload(store)

        quantities = [row.total_quantity for row in payload.rows]
        assert quantities == sorted(quantities, reverse=True)
        assert "" not in {row.product_category for row in payload.rows}

    async def test_summary_and_options(self, store, product_rows):
        payload = await build_most_sold_products_payload(store)

        assert payload.summary.total_categories == 2
        assert payload.summary.total_rows == 8
        assert payload.summary.total_quantity_top_products == 180 + 45
        assert payload.summary.total_transactions == 11

        assert payload.filters.year.selected == "all"
        assert payload.filters.year.options == ["all", "2024", "2023"]
        assert payload.filters.category.options == ["all", "Boissons", "Épicerie"]

    async def test_year_filter(self, store, product_rows):
        payload = await build_most_sold_products_payload(store, year=2023)

        assert {row.product_category for row in payload.rows} == {"Épicerie"}
        assert payload.filters.year.selected == "2023"
        assert payload.summary.total_transactions == 4

    async def test_category_filter_matches_trimmed_values(self, store, product_rows):
        payload = await build_most_sold_products_payload(store, category="Épicerie")

        assert [r.product_reference for r in payload.rows] == ["E1", "E2", "E3"]
        assert payload.filters.category.selected == "Épicerie"

    async def test_selection_missing_from_data_is_kept(self, store, product_rows):
        payload = await build_most_sold_products_payload(store, year=2021, category="Viande")

        assert payload.rows == []
        assert payload.summary.total_quantity_top_products == 0
        assert payload.filters.year.options == ["all", "2024", "2023", "2021"]
        assert payload.filters.category.options == ["all", "Boissons", "Épicerie", "Viande"]

    async def test_empty_store(self, store):
        payload = await build_most_sold_products_payload(store)

        assert payload.rows == []
        assert payload.summary.total_categories == 0
        assert payload.filters.year.options == ["all"]
        assert payload.filters.category.options == ["all"]


class TestOptionLists:
    """Tests for dropdown option builders"""

    def test_years_descending_and_deduplicated(self):
        assert build_year_options([2022, "2024", 2024.0, None, 1800], "all") == ["all", "2024", "2022"]

    def test_selected_year_added(self):
        assert build_year_options([2022], 2030) == ["all", "2030", "2022"]

    def test_categories_locale_sorted_and_exact_duplicates_dropped(self):
        options = build_category_options(
            ["épicerie", "Boissons", "EPICERIE", " Viande ", "Viande", None, ""], "all"
        )
        assert options[0] == "all"
        assert options[1] == "Boissons"
        assert set(options[2:4]) == {"épicerie", "EPICERIE"}
        assert options[4:] == ["Viande"]

    def test_selected_category_matched_ignoring_accents_and_case(self):
        options = build_category_options(["Épicerie", "Boissons"], "epicerie")
        assert options == ["all", "Boissons", "Épicerie"]


class TestCategorySpellings:
    """Categories differing only by case are listed and filtered separately"""

    @pytest.fixture
    def case_variant_rows(self, seed):
        seed([
            {"product_category": "Epicerie", "product_reference": "E1", "quantity": 5.0},
            {"product_category": "EPICERIE", "product_reference": "E2", "quantity": 7.0},
        ])

    async def test_every_category_with_rows_is_selectable(self, store, case_variant_rows):
        payload = await build_most_sold_products_payload(store)
        row_categories = {row.product_category for row in payload.rows}
        assert row_categories == {"Epicerie", "EPICERIE"}

        options = payload.filters.category.options
        assert set(options[1:]) == row_categories

        reachable = set()
        for option in options[1:]:
            filtered = await build_most_sold_products_payload(store, category=option)
            reachable |= {row.product_category for row in filtered.rows}
        assert reachable == row_categories
