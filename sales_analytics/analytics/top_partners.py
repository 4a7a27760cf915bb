"""
Top Partners

Ranked suppliers or clients by sales value or quantity with a per-year
breakdown. Partner names are folded into canonical buckets so that spelling
variants of one partner are ranked together.
"""

from dataclasses import dataclass, field
from typing import List, Literal, Optional, Tuple

import structlog

from sales_analytics.analytics.collation import ACCENT, collation_key
from sales_analytics.analytics.exceptions import InvalidParameterError
from sales_analytics.analytics.metrics import sum_totals
from sales_analytics.analytics.numbers import in_allowed_year_range, to_number, to_year
from sales_analytics.analytics.params import DEFAULT_TOP_LIMIT, MAX_TOP_LIMIT
from sales_analytics.analytics.partners import PartnerBucket, PartnerBucketSet
from sales_analytics.analytics.queries import (
    FilterSet,
    InValues,
    IsNotNull,
    SalesChannel,
    channel_filter,
    fact,
    grouped_period_totals,
    grouped_totals,
    sales_value,
)
from sales_analytics.analytics.schemas import CamelModel
from sales_analytics.config import get_settings
from sales_analytics.database.store import SalesStore

logger = structlog.get_logger(__name__)

PartnerKind = Literal["supplier", "client"]
TopPartnersOrderBy = Literal["sales", "quantity"]

RAW_LIMIT_MULTIPLIER = 4

PARTNER_COLUMNS = {
    "supplier": fact.c.supplier,
    "client": fact.c.billing_sign,
}


@dataclass
class TopPartnersOptions:
    kind: PartnerKind = "supplier"
    limit: Optional[int] = None
    order_by: TopPartnersOrderBy = "sales"
    min_year: Optional[int] = None
    max_year: Optional[int] = None
    sales_channel: SalesChannel = "all"
    indirect_order_types: Tuple[str, ...] = field(default_factory=tuple)


class TopPartnerYear(CamelModel):
    year: int
    total_quantity: float
    total_sales_value: float


class TopPartner(CamelModel):
    rank: int
    partner_name: str
    total_quantity: float
    total_sales_value: float
    years: List[TopPartnerYear]


class PartnerTotals(CamelModel):
    quantity: float
    sales_value: float


class TopPartnersMetadata(CamelModel):
    limit: int
    order_by: TopPartnersOrderBy
    min_year: Optional[int]
    max_year: Optional[int]
    sales_channel: SalesChannel


class TopPartnersPayload(CamelModel):
    """Response of the top-partners endpoint"""
    kind: PartnerKind
    partners: List[TopPartner]
    available_years: List[int]
    totals: PartnerTotals
    metadata: TopPartnersMetadata


def normalize_limit(limit: Optional[int]) -> int:
    """Default 5, clamped into 1..25."""
    if limit is None:
        return DEFAULT_TOP_LIMIT
    return max(1, min(MAX_TOP_LIMIT, int(limit)))


def raw_fetch_limit(limit: int) -> int:
    """Rows fetched before folding, so merged variants can still reach the top."""
    return max(limit, min(limit * RAW_LIMIT_MULTIPLIER, MAX_TOP_LIMIT * RAW_LIMIT_MULTIPLIER))


def _check_year(year: Optional[int], name: str) -> Optional[int]:
    if year is not None and not in_allowed_year_range(year):
        raise InvalidParameterError(
            f"Year bounds must be between 1900 and 2200. Received {year}.",
            parameter=name,
        )
    return year


def _sort_key(bucket: PartnerBucket, order_by: TopPartnersOrderBy):
    if order_by == "quantity":
        primary, secondary = bucket.total_quantity, bucket.total_sales
    else:
        primary, secondary = bucket.total_sales, bucket.total_quantity
    return (-primary, -secondary, collation_key(bucket.display_name, ACCENT), bucket.ordinal)


async def build_top_partners_payload(
    store: SalesStore,
    options: TopPartnersOptions,
) -> TopPartnersPayload:
    """
    Assemble the top-partners payload.

    Raises:
        InvalidParameterError: Year bounds out of range or inverted
    """
    if options.kind not in PARTNER_COLUMNS:
        raise InvalidParameterError(f"Unsupported partner kind: {options.kind}", parameter="kind")

    limit = normalize_limit(options.limit)
    min_year = _check_year(options.min_year, "minYear")
    max_year = _check_year(options.max_year, "maxYear")
    if min_year is not None and max_year is not None and min_year > max_year:
        raise InvalidParameterError(
            f"minYear ({min_year}) must be less than or equal to maxYear ({max_year}).",
            parameter="minYear",
        )

    indirect_types = options.indirect_order_types or tuple(get_settings().analytics.indirect_order_types)
    column = PARTNER_COLUMNS[options.kind]
    value = sales_value(options.sales_channel, indirect_types, view="partners")

    filters = (
        FilterSet([IsNotNull(fact.c.delivery_date)])
        .with_year_range(min_year, max_year)
        .extend(channel_filter(options.sales_channel, indirect_types))
    )

    aggregate_rows = await store.fetch_all(
        grouped_totals(column, value, filters, order_by=options.order_by, limit=raw_fetch_limit(limit))
    )

    buckets = PartnerBucketSet()
    for index, row in enumerate(aggregate_rows):
        buckets.add(
            row["name"],
            to_number(row["total_sales"]),
            to_number(row["total_quantity"]),
            ordinal=index,
        )

    variants = buckets.all_variants()
    if variants:
        year_rows = await store.fetch_all(
            grouped_period_totals(column, value, filters.extend(InValues(column, tuple(variants))))
        )
        for row in year_rows:
            bucket = buckets.get(row["name"])
            year = to_year(row["year"])
            if bucket is None or year is None:
                continue
            bucket.add_year(year, to_number(row["total_sales"]), to_number(row["total_quantity"]))

    ranked = sorted(buckets, key=lambda b: _sort_key(b, options.order_by))[:limit]

    partners = [
        TopPartner(
            rank=index + 1,
            partner_name=bucket.display_name,
            total_quantity=bucket.total_quantity,
            total_sales_value=bucket.total_sales,
            years=[
                TopPartnerYear(
                    year=year,
                    total_quantity=totals.total_quantity,
                    total_sales_value=totals.total_sales,
                )
                for year, totals in sorted(bucket.years.items())
            ],
        )
        for index, bucket in enumerate(ranked)
    ]

    available_years = sorted({year for bucket in ranked for year in bucket.years})

    logger.info(
        "Top partners payload built",
        kind=options.kind,
        raw_rows=len(aggregate_rows),
        buckets=len(buckets),
        partners=len(partners),
    )

    return TopPartnersPayload(
        kind=options.kind,
        partners=partners,
        available_years=available_years,
        totals=PartnerTotals(
            quantity=sum_totals(p.total_quantity for p in partners),
            sales_value=sum_totals(p.total_sales_value for p in partners),
        ),
        metadata=TopPartnersMetadata(
            limit=limit,
            order_by=options.order_by,
            min_year=min_year,
            max_year=max_year,
            sales_channel=options.sales_channel,
        ),
    )
