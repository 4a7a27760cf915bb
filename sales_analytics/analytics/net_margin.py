"""
Net Margin Trends

Trailing-window margin totals (12/6/3/1 months) and zero-filled monthly,
daily and weekly series of net margin and sales value.

Rows are fetched once for the widest window, deduplicated by transaction id
(the first occurrence in delivery-date order is kept) and folded in memory.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

import structlog
from pydantic import BaseModel
from sqlalchemy import select

from sales_analytics.analytics import periods
from sales_analytics.analytics.metrics import merge_series, seed_buckets
from sales_analytics.analytics.numbers import to_number
from sales_analytics.analytics.queries import FilterSet, fact
from sales_analytics.config import get_settings
from sales_analytics.database.store import SalesStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class MarginRow:
    transaction_id: int
    delivery_date: datetime
    total_net_margin_eur: float
    sales_altona: float


class PeriodSummary(BaseModel):
    total_net_margin_eur: float
    row_count: int
    start_date: str
    end_date: str


class Periods(BaseModel):
    last_12_months: PeriodSummary
    last_6_months: PeriodSummary
    last_3_months: PeriodSummary
    last_1_month: PeriodSummary


class MonthPoint(BaseModel):
    month: str
    total_net_margin_eur: float
    sales_altona: float


class DayPoint(BaseModel):
    date: str
    total_net_margin_eur: float
    sales_altona: float


class WeekPoint(BaseModel):
    week_start: str
    total_net_margin_eur: float
    sales_altona: float


class NetMarginMeta(BaseModel):
    duplicate_transaction_ids: List[int]
    duplicate_count: int
    debug: bool


class DebugRow(BaseModel):
    transaction_id: int
    delivery_date: str
    stored_margin: float


class NetMarginPayload(BaseModel):
    """Response of the net-margin endpoint"""
    currency: str
    periods: Periods
    monthly_series_12m: List[MonthPoint]
    daily_series_3m: List[DayPoint]
    daily_series_1m: List[DayPoint]
    weekly_series_3m: List[WeekPoint]
    weekly_series_1m: List[WeekPoint]
    meta: NetMarginMeta
    debug_rows: Optional[List[DebugRow]] = None


class _Series:
    """Margin and sales buckets sharing one pre-seeded key set."""

    def __init__(self, keys: Sequence[str]):
        self.margin: Dict[str, float] = seed_buckets(keys)
        self.sales: Dict[str, float] = seed_buckets(keys)

    def add(self, key: str, margin: float, sales: float) -> None:
        self.margin[key] = self.margin.get(key, 0.0) + margin
        self.sales[key] = self.sales.get(key, 0.0) + sales

    def merged(self) -> List[Tuple[str, float, float]]:
        return merge_series(self.margin, self.sales)


def _to_row(mapping) -> MarginRow:
    return MarginRow(
        transaction_id=int(mapping["transaction_id"]),
        delivery_date=mapping["delivery_date"],
        total_net_margin_eur=to_number(mapping["total_net_margin_eur"]),
        sales_altona=to_number(mapping["sales_altona"]),
    )


async def fetch_margin_rows(store: SalesStore, start: datetime) -> List[MarginRow]:
    """Rows delivered on or after ``start``, oldest first."""
    statement = (
        select(
            fact.c.transaction_id,
            fact.c.delivery_date,
            fact.c.total_net_margin_eur,
            fact.c.sales_altona,
        )
        .where(FilterSet().with_date_range(start, None).where())
        .order_by(fact.c.delivery_date.asc(), fact.c.transaction_id.asc())
    )
    return [_to_row(row) for row in await store.fetch_all(statement)]


def deduplicate_rows(rows: Sequence[MarginRow]) -> Tuple[List[MarginRow], List[int]]:
    """Keep the first row of every transaction id and report the others."""
    seen = set()
    kept: List[MarginRow] = []
    duplicates: List[int] = []
    for row in rows:
        if row.transaction_id in seen:
            duplicates.append(row.transaction_id)
            continue
        seen.add(row.transaction_id)
        kept.append(row)
    return kept, duplicates


async def build_net_margin_payload(
    store: SalesStore,
    debug: bool = False,
    now: Optional[datetime] = None,
) -> NetMarginPayload:
    """
    Assemble the net-margin payload.

    Args:
        store: Fact store
        debug: Echo the first deduplicated rows back in ``debug_rows``
        now: Reference instant (naive UTC); defaults to the current time

    Returns:
        NetMarginPayload
    """
    settings = get_settings().analytics
    now = periods.normalize_reference(now or periods.utc_now())
    windows = periods.trailing_windows(now)
    start12, start3, start1 = windows[12].start, windows[3].start, windows[1].start

    raw_rows = await fetch_margin_rows(store, start12)
    rows, duplicate_ids = deduplicate_rows(raw_rows)

    monthly = _Series(periods.generate_month_range(start12, now))
    daily_3m = _Series(periods.generate_day_range(start3, now))
    daily_1m = _Series(periods.generate_day_range(start1, now))
    weekly_3m = _Series(periods.generate_week_range(start3, now))
    weekly_1m = _Series(periods.generate_week_range(start1, now))

    window_sums = {months: 0.0 for months in windows}
    window_counts = {months: 0 for months in windows}

    for row in rows:
        margin, sales, delivered = row.total_net_margin_eur, row.sales_altona, row.delivery_date

        for months, window in windows.items():
            if window.contains(delivered):
                window_sums[months] += margin
                window_counts[months] += 1

        monthly.add(periods.month_key(delivered), margin, sales)

        if delivered >= start3:
            daily_3m.add(periods.day_key(delivered), margin, sales)
            weekly_3m.add(periods.week_start_key(delivered), margin, sales)

        if delivered >= start1:
            daily_1m.add(periods.day_key(delivered), margin, sales)
            weekly_1m.add(periods.week_start_key(delivered), margin, sales)

    def summary(months: int) -> PeriodSummary:
        window = windows[months]
        return PeriodSummary(
            total_net_margin_eur=window_sums[months],
            row_count=window_counts[months],
            start_date=periods.to_iso(window.start),
            end_date=periods.to_iso(window.end),
        )

    payload = NetMarginPayload(
        currency=settings.currency,
        periods=Periods(
            last_12_months=summary(12),
            last_6_months=summary(6),
            last_3_months=summary(3),
            last_1_month=summary(1),
        ),
        monthly_series_12m=[
            MonthPoint(month=key, total_net_margin_eur=m, sales_altona=s)
            for key, m, s in monthly.merged()
        ],
        daily_series_3m=[
            DayPoint(date=key, total_net_margin_eur=m, sales_altona=s)
            for key, m, s in daily_3m.merged()
        ],
        daily_series_1m=[
            DayPoint(date=key, total_net_margin_eur=m, sales_altona=s)
            for key, m, s in daily_1m.merged()
        ],
        weekly_series_3m=[
            WeekPoint(week_start=key, total_net_margin_eur=m, sales_altona=s)
            for key, m, s in weekly_3m.merged()
        ],
        weekly_series_1m=[
            WeekPoint(week_start=key, total_net_margin_eur=m, sales_altona=s)
            for key, m, s in weekly_1m.merged()
        ],
        meta=NetMarginMeta(
            duplicate_transaction_ids=duplicate_ids,
            duplicate_count=len(duplicate_ids),
            debug=debug,
        ),
    )

    if debug:
        payload.debug_rows = [
            DebugRow(
                transaction_id=row.transaction_id,
                delivery_date=periods.to_iso(row.delivery_date),
                stored_margin=row.total_net_margin_eur,
            )
            for row in rows[: settings.debug_row_limit]
        ]

    if duplicate_ids:
        logger.warning("Duplicate transaction ids in margin window", duplicate_count=len(duplicate_ids))

    logger.info(
        "Net margin payload built",
        rows=len(rows),
        months=len(payload.monthly_series_12m),
    )
    return payload
