"""
Sales Listing

Paged view over the most recently inserted fact rows with running totals of
the scope.
"""

import asyncio
import math
from typing import List, Optional

import structlog
from pydantic import BaseModel
from sqlalchemy import select

from sales_analytics.analytics import periods
from sales_analytics.analytics.metrics import sum_totals
from sales_analytics.analytics.numbers import to_nullable_number
from sales_analytics.analytics.params import DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from sales_analytics.analytics.queries import fact
from sales_analytics.analytics.schemas import CamelModel
from sales_analytics.config import get_settings
from sales_analytics.database.models import FACT_COLUMNS, OPTIONAL_NUMERIC_COLUMNS, REQUIRED_NUMERIC_COLUMNS
from sales_analytics.database.store import SalesStore

logger = structlog.get_logger(__name__)

NUMERIC_COLUMNS = set(OPTIONAL_NUMERIC_COLUMNS) | set(REQUIRED_NUMERIC_COLUMNS)


class SalesRow(BaseModel):
    transaction_id: int
    commercial_responsible: str
    order_type: str
    supplier: str
    billing_sign: Optional[str]
    delivery_client: str
    delivery_circuit: str
    product_category: str
    product_family: str
    product_reference: str
    delivery_date: str
    quantity: Optional[float]
    sales_altona: Optional[float]
    purchases_altona_eur: Optional[float]
    purchases_purchase_currency: Optional[float]
    purchase_currency: Optional[str]
    direct_sales: Optional[float]
    commission_altona: Optional[float]
    total_pub_budget: Optional[float]
    rfa_on_resale_orders: Optional[float]
    logistics_cost_altona: Optional[float]
    prescriber_commission: Optional[float]
    total_net_margin_eur: Optional[float]


class SalesAggregates(BaseModel):
    direct_sales: float
    commission_altona: float
    total_net_margin_eur: float


class SalesPage(CamelModel):
    """Response of the sales listing endpoint"""
    scope_count: int
    page: int
    page_size: int
    page_count: int
    total_rows: int
    rows: List[SalesRow]
    aggregates: SalesAggregates


def to_sales_row(raw) -> SalesRow:
    values = {"transaction_id": raw["transaction_id"]}
    for name in FACT_COLUMNS:
        value = raw[name]
        if name == "delivery_date":
            value = periods.to_iso(value)
        elif name in NUMERIC_COLUMNS:
            value = to_nullable_number(value)
        values[name] = value
    return SalesRow(**values)


def _aggregate(raw_rows, column: str) -> float:
    return sum_totals(v for v in (to_nullable_number(r[column]) for r in raw_rows) if v is not None)


async def build_sales_page(
    store: SalesStore,
    page: int = DEFAULT_PAGE,
    page_size: int = DEFAULT_PAGE_SIZE,
    scope_limit: Optional[int] = None,
) -> SalesPage:
    """
    Page through the latest ``scope_limit`` rows by insertion id.

    A page past the end is moved back to the last page.
    """
    scope_limit = scope_limit or get_settings().analytics.listing_scope_limit

    statement = select(fact).order_by(fact.c.transaction_id.desc()).limit(scope_limit)
    total_rows, scope_rows = await asyncio.gather(
        store.count_rows(),
        store.fetch_all(statement),
    )

    scope_count = len(scope_rows)
    page_count = max(1, math.ceil(scope_count / page_size))
    page = min(page, page_count)
    start = (page - 1) * page_size

    logger.debug("Sales page built", page=page, page_size=page_size, scope_count=scope_count)

    return SalesPage(
        scope_count=scope_count,
        page=page,
        page_size=page_size,
        page_count=page_count,
        total_rows=total_rows,
        rows=[to_sales_row(row) for row in scope_rows[start:start + page_size]],
        aggregates=SalesAggregates(
            direct_sales=_aggregate(scope_rows, "direct_sales"),
            commission_altona=_aggregate(scope_rows, "commission_altona"),
            total_net_margin_eur=_aggregate(scope_rows, "total_net_margin_eur"),
        ),
    )
