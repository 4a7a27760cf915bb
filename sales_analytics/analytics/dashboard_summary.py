"""
Dashboard Summary

Month-over-month comparison cards (revenue, quantity, operating-cost share)
and the top supplier by revenue of the selected month.

Revenue is the sum of ``direct_sales``; operating cost is logistics cost plus
commission plus prescriber commission plus RFA.
"""

import asyncio
from datetime import datetime
from typing import List, Literal, Optional

import structlog
from sqlalchemy import func, select

from sales_analytics.analytics import periods
from sales_analytics.analytics.exceptions import InvalidParameterError
from sales_analytics.analytics.metrics import Delta, absolute_delta, percent_delta
from sales_analytics.analytics.numbers import round_half_up, to_number
from sales_analytics.analytics.queries import (
    FilterSet,
    NotBlank,
    fact,
    period_sums,
    quantity_value,
    trimmed,
)
from sales_analytics.analytics.schemas import CamelModel
from sales_analytics.database.store import SalesStore

logger = structlog.get_logger(__name__)

SUMMED_COLUMNS = (
    "direct_sales",
    "quantity",
    "logistics_cost_altona",
    "commission_altona",
    "prescriber_commission",
    "rfa_on_resale_orders",
)

OPERATING_COST_COLUMNS = (
    "logistics_cost_altona",
    "commission_altona",
    "prescriber_commission",
    "rfa_on_resale_orders",
)


class SummaryPeriod(CamelModel):
    start: str
    end: str
    label: str


class SummaryCard(CamelModel):
    id: Literal["totalRevenue", "quantitySold", "operatingCostShare"]
    label: str
    unit: Literal["currency", "number", "percent"]
    current_value: Optional[float]
    previous_value: Optional[float]
    delta: Optional[Delta]


class TopSupplier(CamelModel):
    supplier: str
    total_revenue: float
    quantity_sold: float


class DashboardSummaryPayload(CamelModel):
    """Response of the dashboard summary endpoint"""
    current_period: SummaryPeriod
    previous_period: SummaryPeriod
    cards: List[SummaryCard]
    top_supplier: Optional[TopSupplier]


def _serialize_period(period: periods.MonthPeriod) -> SummaryPeriod:
    return SummaryPeriod(
        start=periods.to_iso(period.start),
        end=periods.to_iso(period.end),
        label=period.label,
    )


def _operating_share(sums: dict) -> Optional[float]:
    revenue = to_number(sums.get("direct_sales"))
    if revenue <= 0:
        return None
    cost = sum(to_number(sums.get(name)) for name in OPERATING_COST_COLUMNS)
    return cost / revenue * 100


def _top_supplier_query(period: periods.MonthPeriod):
    total_revenue = func.sum(fact.c.direct_sales).label("total_revenue")
    filters = FilterSet([NotBlank(fact.c.supplier)]).with_date_range(period.start, period.end)
    return (
        select(
            trimmed(fact.c.supplier).label("supplier"),
            total_revenue,
            func.sum(quantity_value()).label("quantity_sold"),
        )
        .where(filters.where())
        .group_by(trimmed(fact.c.supplier))
        .order_by(total_revenue.desc())
        .limit(1)
    )


async def build_dashboard_summary(
    store: SalesStore,
    months_ago: int = 1,
    reference: Optional[datetime] = None,
) -> DashboardSummaryPayload:
    """
    Compare the month ``months_ago`` months back with the month before it.

    Raises:
        InvalidParameterError: months_ago is below 1
    """
    if months_ago < 1:
        raise InvalidParameterError("monthsAgo must be a positive integer (>= 1).", parameter="monthsAgo")

    reference = reference or periods.utc_now()
    current = periods.month_bounds(reference, months_ago)
    previous = periods.month_bounds(reference, months_ago + 1)

    current_sums, previous_sums, supplier_row = await asyncio.gather(
        store.fetch_one(period_sums(current.start, current.end, SUMMED_COLUMNS)),
        store.fetch_one(period_sums(previous.start, previous.end, SUMMED_COLUMNS)),
        store.fetch_one(_top_supplier_query(current)),
    )
    current_sums = dict(current_sums or {})
    previous_sums = dict(previous_sums or {})

    current_revenue = to_number(current_sums.get("direct_sales"))
    previous_revenue = to_number(previous_sums.get("direct_sales"))
    current_quantity = to_number(current_sums.get("quantity"))
    previous_quantity = to_number(previous_sums.get("quantity"))
    current_share = _operating_share(current_sums)
    previous_share = _operating_share(previous_sums)

    cards = [
        SummaryCard(
            id="totalRevenue",
            label="Total Revenue",
            unit="currency",
            current_value=current_revenue,
            previous_value=previous_revenue,
            delta=percent_delta(current_revenue, previous_revenue),
        ),
        SummaryCard(
            id="quantitySold",
            label="Quantity Sold",
            unit="number",
            current_value=current_quantity,
            previous_value=previous_quantity,
            delta=percent_delta(current_quantity, previous_quantity),
        ),
        SummaryCard(
            id="operatingCostShare",
            label="Operating Cost Share",
            unit="percent",
            current_value=round_half_up(current_share, 4) if current_share is not None else None,
            previous_value=round_half_up(previous_share, 4) if previous_share is not None else None,
            delta=absolute_delta(current_share, previous_share),
        ),
    ]

    top_supplier = None
    if supplier_row is not None and supplier_row["supplier"]:
        top_supplier = TopSupplier(
            supplier=supplier_row["supplier"],
            total_revenue=to_number(supplier_row["total_revenue"]),
            quantity_sold=to_number(supplier_row["quantity_sold"]),
        )

    logger.info(
        "Dashboard summary built",
        period=current.label,
        revenue=current_revenue,
        top_supplier=top_supplier.supplier if top_supplier else None,
    )

    return DashboardSummaryPayload(
        current_period=_serialize_period(current),
        previous_period=_serialize_period(previous),
        cards=cards,
        top_supplier=top_supplier,
    )
