"""
Analytics API Endpoints

Top partners, most sold products and commercial responsibles.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Response

from sales_analytics.analytics import params
from sales_analytics.analytics.commercial_responsibles import (
    CommercialResponsiblesOptions,
    CommercialResponsiblesPayload,
    build_commercial_responsibles_payload,
)
from sales_analytics.analytics.most_sold_products import (
    MostSoldProductsPayload,
    build_most_sold_products_payload,
)
from sales_analytics.analytics.top_partners import (
    TopPartnersOptions,
    TopPartnersPayload,
    build_top_partners_payload,
)
from sales_analytics.config import get_settings
from sales_analytics.database.store import SalesStore
from sales_analytics.serving.api.dependencies import get_store

router = APIRouter()
logger = structlog.get_logger(__name__)

NO_STORE = "no-store"


@router.get("/top-partners", response_model=TopPartnersPayload)
async def get_top_partners(
    response: Response,
    kind: Optional[str] = Query(None, description="supplier or client"),
    limit: Optional[str] = Query(None, description="Partners returned (1-25, default 5)"),
    order_by: Optional[str] = Query(None, alias="orderBy", description="sales or quantity"),
    min_year: Optional[str] = Query(None, alias="minYear"),
    max_year: Optional[str] = Query(None, alias="maxYear"),
    sales_channel: Optional[str] = Query(None, alias="salesChannel", description="all, direct or indirect"),
    store: SalesStore = Depends(get_store),
) -> TopPartnersPayload:
    """
    Ranked suppliers or clients with a per-year breakdown.
    """
    min_year_value, max_year_value = params.parse_year_bounds(min_year, max_year)
    options = TopPartnersOptions(
        kind=params.parse_partner_kind(kind),
        limit=params.parse_limit(limit, maximum=params.MAX_TOP_LIMIT),
        order_by=params.parse_order_by(order_by, params.PARTNER_ORDER_BY),
        min_year=min_year_value,
        max_year=max_year_value,
        sales_channel=params.parse_sales_channel(sales_channel),
        indirect_order_types=tuple(get_settings().analytics.indirect_order_types),
    )

    payload = await build_top_partners_payload(store, options)
    response.headers["Cache-Control"] = NO_STORE
    return payload


@router.get("/most-sold-products", response_model=MostSoldProductsPayload)
async def get_most_sold_products(
    response: Response,
    year: Optional[str] = Query(None, description="Delivery year or 'all'"),
    category: Optional[str] = Query(None, description="Product category or 'all'"),
    store: SalesStore = Depends(get_store),
) -> MostSoldProductsPayload:
    """
    Top five products of every category by quantity.
    """
    payload = await build_most_sold_products_payload(
        store,
        year=params.parse_year(year),
        category=params.parse_category(category),
    )
    response.headers["Cache-Control"] = NO_STORE
    return payload


@router.get("/commercial-responsibles", response_model=CommercialResponsiblesPayload)
async def get_commercial_responsibles(
    response: Response,
    sales_channel: Optional[str] = Query(None, alias="salesChannel"),
    year: Optional[str] = Query(None, description="Delivery year; empty or 'all' for every year"),
    view: Optional[str] = Query(None, description="yearly or monthly"),
    order_by: Optional[str] = Query(None, alias="orderBy", description="sales, quantity or name"),
    limit: Optional[str] = Query(None, description="Rows returned (1-250)"),
    store: SalesStore = Depends(get_store),
) -> CommercialResponsiblesPayload:
    """
    Sales per commercial responsible with shares and a period series.
    """
    options = CommercialResponsiblesOptions(
        sales_channel=params.parse_sales_channel(sales_channel),
        year=params.parse_optional_year(year),
        view=params.parse_view(view),
        order_by=params.parse_order_by(order_by, params.COMMERCIAL_ORDER_BY),
        limit=params.parse_limit(limit, maximum=params.MAX_COMMERCIAL_LIMIT),
        indirect_order_types=tuple(get_settings().analytics.indirect_order_types),
    )

    payload = await build_commercial_responsibles_payload(store, options)
    response.headers["Cache-Control"] = NO_STORE
    return payload
