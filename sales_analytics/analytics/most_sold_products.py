"""
Most Sold Products

Top five products of every category by quantity, optionally restricted to
one delivery year and/or one category, with the option lists of the year and
category dropdowns.
"""

import asyncio
from typing import Iterable, List, Optional, Union

import structlog

from sales_analytics.analytics import periods
from sales_analytics.analytics.collation import BASE, collation_key, locale_equal
from sales_analytics.analytics.metrics import share, sum_totals
from sales_analytics.analytics.numbers import to_number, to_year
from sales_analytics.analytics.params import ALL
from sales_analytics.analytics.queries import (
    Equals,
    FilterSet,
    NotBlank,
    count_matching,
    distinct_categories,
    distinct_years,
    fact,
    top_products_per_category,
)
from sales_analytics.analytics.schemas import CamelModel, FilterOptions
from sales_analytics.database.store import SalesStore

logger = structlog.get_logger(__name__)

YearFilter = Union[int, str]


class MostSoldProductRow(CamelModel):
    product_category: str
    product_reference: str
    product_family: Optional[str]
    total_quantity: float
    category_total_quantity: float
    share_within_category: Optional[float]
    rank_within_category: int


class MostSoldProductsFilters(CamelModel):
    year: FilterOptions
    category: FilterOptions


class MostSoldProductsSummary(CamelModel):
    total_categories: int
    total_quantity_top_products: float
    total_rows: int
    total_transactions: int
    generated_at: str


class MostSoldProductsPayload(CamelModel):
    """Response of the most-sold-products endpoint"""
    filters: MostSoldProductsFilters
    rows: List[MostSoldProductRow]
    summary: MostSoldProductsSummary


def build_filters(year: YearFilter, category: str) -> FilterSet:
    filters = FilterSet([NotBlank(fact.c.product_category)])
    if year != ALL:
        start, end = periods.year_bounds(int(year))
        filters = filters.with_date_range(start, end)
    if category != ALL:
        filters = filters.extend(Equals(fact.c.product_category, category))
    return filters


def build_year_options(raw_years: Iterable[object], selected: YearFilter) -> List[str]:
    """Distinct years, newest first, always including the selection."""
    years = {year for year in (to_year(value) for value in raw_years) if year is not None}
    if selected != ALL:
        years.add(int(selected))
    return [ALL] + [str(year) for year in sorted(years, reverse=True)]


def build_category_options(raw_categories: Iterable[Optional[str]], selected: str) -> List[str]:
    """
    Distinct categories in locale order, always including the selection.

    Only exact duplicates are dropped: rows are grouped on the exact trimmed
    value, so every spelling stays selectable. The selection is added only
    when no listed category equals it ignoring accents and case.
    """
    distinct = {(c or "").strip() for c in raw_categories} - {""}
    categories = sorted(distinct, key=lambda c: collation_key(c, BASE))

    if selected != ALL and not any(locale_equal(selected, c) for c in categories):
        categories.append(selected)
        categories.sort(key=lambda c: collation_key(c, BASE))

    return [ALL] + categories


def map_product_rows(raw_rows) -> List[MostSoldProductRow]:
    rows: List[MostSoldProductRow] = []
    for raw in raw_rows:
        category = (raw["product_category"] or "").strip()
        if not category:
            continue
        total = to_number(raw["total_quantity"])
        category_total = to_number(raw["category_total_quantity"])
        rows.append(
            MostSoldProductRow(
                product_category=category,
                product_reference=raw["product_reference"] or "N/A",
                product_family=raw["product_family"],
                total_quantity=total,
                category_total_quantity=category_total,
                share_within_category=share(total, category_total),
                rank_within_category=int(to_number(raw["rank"])),
            )
        )
    return rows


async def build_most_sold_products_payload(
    store: SalesStore,
    year: YearFilter = ALL,
    category: str = ALL,
) -> MostSoldProductsPayload:
    """
    Assemble the most-sold-products payload.

    Args:
        store: Fact store
        year: Delivery year or "all"
        category: Exact (trimmed) product category or "all"
    """
    filters = build_filters(year, category)

    year_rows, category_rows, product_rows, transaction_count = await asyncio.gather(
        store.fetch_all(distinct_years()),
        store.fetch_all(distinct_categories()),
        store.fetch_all(top_products_per_category(filters)),
        store.scalar(count_matching(filters)),
    )

    rows = map_product_rows(product_rows)

    logger.info(
        "Most sold products payload built",
        year=str(year),
        category=category,
        rows=len(rows),
    )

    return MostSoldProductsPayload(
        filters=MostSoldProductsFilters(
            year=FilterOptions(
                selected=str(year),
                options=build_year_options((r["year"] for r in year_rows), year),
            ),
            category=FilterOptions(
                selected=category,
                options=build_category_options((r["category"] for r in category_rows), category),
            ),
        ),
        rows=rows,
        summary=MostSoldProductsSummary(
            total_categories=len({row.product_category for row in rows}),
            total_quantity_top_products=sum_totals(row.total_quantity for row in rows),
            total_rows=len(rows),
            total_transactions=int(transaction_count or 0),
            generated_at=periods.to_iso(periods.utc_now()),
        ),
    )
