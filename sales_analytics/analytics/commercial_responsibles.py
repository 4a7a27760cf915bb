"""
Commercial Responsibles

Sales value and quantity per commercial responsible, with shares of the
returned table and a yearly or monthly series carrying deltas against the
previous point of each responsible's own series.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

import structlog

from sales_analytics.analytics import periods
from sales_analytics.analytics.exceptions import InvalidParameterError
from sales_analytics.analytics.metrics import share, sum_totals, with_period_deltas
from sales_analytics.analytics.most_sold_products import build_year_options
from sales_analytics.analytics.numbers import in_allowed_year_range, to_month, to_number, to_year
from sales_analytics.analytics.params import ALL, MAX_COMMERCIAL_LIMIT, SALES_CHANNELS, TIME_VIEWS
from sales_analytics.analytics.queries import (
    FilterSet,
    InValues,
    IsNotNull,
    SalesChannel,
    channel_filter,
    distinct_years,
    fact,
    grouped_period_totals,
    grouped_totals,
    sales_value,
)
from sales_analytics.analytics.schemas import CamelModel, FilterOptions
from sales_analytics.config import get_settings
from sales_analytics.database.store import SalesStore

logger = structlog.get_logger(__name__)

TimeView = Literal["yearly", "monthly"]
CommercialOrderBy = Literal["sales", "quantity", "name"]


@dataclass
class CommercialResponsiblesOptions:
    sales_channel: SalesChannel = "all"
    year: Optional[int] = None
    view: TimeView = "yearly"
    order_by: CommercialOrderBy = "sales"
    limit: Optional[int] = None
    indirect_order_types: Tuple[str, ...] = field(default_factory=tuple)


class CommercialPeriodBucket(CamelModel):
    period: str
    year: int
    month: Optional[int]
    sales_value: float
    quantity: float
    delta_sales_value: Optional[float]
    delta_quantity: Optional[float]


class CommercialResponsibleRow(CamelModel):
    commercial_responsible: str
    total_sales_value: float
    total_quantity: float
    share_of_sales_value: Optional[float]
    share_of_quantity: Optional[float]
    series: List[CommercialPeriodBucket]


class CommercialFilters(CamelModel):
    year: FilterOptions
    sales_channel: FilterOptions
    view: FilterOptions


class CommercialTotals(CamelModel):
    quantity: float
    sales_value: float


class CommercialMetadata(CamelModel):
    generated_at: str
    order_by: CommercialOrderBy
    limit: Optional[int]


class CommercialResponsiblesPayload(CamelModel):
    """Response of the commercial-responsibles endpoint"""
    rows: List[CommercialResponsibleRow]
    filters: CommercialFilters
    totals: CommercialTotals
    metadata: CommercialMetadata


def normalize_limit(limit: Optional[int]) -> Optional[int]:
    if limit is None:
        return None
    return max(1, min(MAX_COMMERCIAL_LIMIT, int(limit)))


def build_series(rows, view: TimeView) -> Dict[str, List[CommercialPeriodBucket]]:
    """Group period rows by responsible and attach per-series deltas."""
    points_by_name: Dict[str, List[dict]] = {}
    for row in rows:
        name = (row["name"] or "").strip()
        year = to_year(row["year"])
        if not name or year is None:
            continue
        month = to_month(row["month"]) if view == "monthly" else None
        if view == "monthly" and month is None:
            continue
        points_by_name.setdefault(name, []).append({
            "period": f"{year}-{month:02d}" if month is not None else str(year),
            "year": year,
            "month": month,
            "sales_value": to_number(row["total_sales"]),
            "quantity": to_number(row["total_quantity"]),
        })

    series: Dict[str, List[CommercialPeriodBucket]] = {}
    for name, points in points_by_name.items():
        series[name] = [
            CommercialPeriodBucket(
                period=point["period"],
                year=point["year"],
                month=point["month"],
                sales_value=point["sales_value"],
                quantity=point["quantity"],
                delta_sales_value=point["sales_value_delta"],
                delta_quantity=point["quantity_delta"],
            )
            for point in with_period_deltas(points, fields=("sales_value", "quantity"))
        ]
    return series


async def build_commercial_responsibles_payload(
    store: SalesStore,
    options: CommercialResponsiblesOptions,
) -> CommercialResponsiblesPayload:
    """
    Assemble the commercial-responsibles payload.

    Totals and shares cover the returned rows only, so they match the table
    the UI shows when a limit applies.
    """
    if options.year is not None and not in_allowed_year_range(options.year):
        raise InvalidParameterError(
            f"Year must be between 1900 and 2200. Received {options.year}.",
            parameter="year",
        )

    limit = normalize_limit(options.limit)
    indirect_types = options.indirect_order_types or tuple(get_settings().analytics.indirect_order_types)
    column = fact.c.commercial_responsible
    value = sales_value(options.sales_channel, indirect_types, view="commercial")

    filters = FilterSet([IsNotNull(fact.c.delivery_date)]).extend(
        channel_filter(options.sales_channel, indirect_types)
    )
    if options.year is not None:
        start, end = periods.year_bounds(options.year)
        filters = filters.with_date_range(start, end)

    aggregate_rows, year_rows = await asyncio.gather(
        store.fetch_all(grouped_totals(column, value, filters, order_by=options.order_by, limit=limit)),
        store.fetch_all(distinct_years()),
    )

    aggregates = []
    for row in aggregate_rows:
        name = (row["name"] or "").strip()
        if name:
            aggregates.append((name, to_number(row["total_sales"]), to_number(row["total_quantity"])))

    total_sales = sum_totals(sales for _, sales, _ in aggregates)
    total_quantity = sum_totals(quantity for _, _, quantity in aggregates)

    series_by_name: Dict[str, List[CommercialPeriodBucket]] = {}
    if aggregates:
        names = tuple(name for name, _, _ in aggregates)
        period_rows = await store.fetch_all(
            grouped_period_totals(
                column,
                value,
                filters.extend(InValues(column, names)),
                monthly=options.view == "monthly",
            )
        )
        series_by_name = build_series(period_rows, options.view)

    rows = [
        CommercialResponsibleRow(
            commercial_responsible=name,
            total_sales_value=sales,
            total_quantity=quantity,
            share_of_sales_value=share(sales, total_sales),
            share_of_quantity=share(quantity, total_quantity),
            series=series_by_name.get(name, []),
        )
        for name, sales, quantity in aggregates
    ]

    selected_year = str(options.year) if options.year is not None else ALL

    logger.info(
        "Commercial responsibles payload built",
        rows=len(rows),
        view=options.view,
        sales_channel=options.sales_channel,
    )

    return CommercialResponsiblesPayload(
        rows=rows,
        filters=CommercialFilters(
            year=FilterOptions(
                selected=selected_year,
                options=build_year_options(
                    (r["year"] for r in year_rows),
                    options.year if options.year is not None else ALL,
                ),
            ),
            sales_channel=FilterOptions(selected=options.sales_channel, options=list(SALES_CHANNELS)),
            view=FilterOptions(selected=options.view, options=list(TIME_VIEWS)),
        ),
        totals=CommercialTotals(quantity=total_quantity, sales_value=total_sales),
        metadata=CommercialMetadata(
            generated_at=periods.to_iso(periods.utc_now()),
            order_by=options.order_by,
            limit=limit,
        ),
    )
