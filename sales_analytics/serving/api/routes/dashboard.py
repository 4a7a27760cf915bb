"""
Dashboard API Endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from sales_analytics.analytics.dashboard_summary import DashboardSummaryPayload, build_dashboard_summary
from sales_analytics.analytics.params import parse_months_ago
from sales_analytics.database.store import SalesStore
from sales_analytics.serving.api.dependencies import get_store

router = APIRouter()

SUMMARY_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=86400"


@router.get("/summary", response_model=DashboardSummaryPayload)
async def get_dashboard_summary(
    response: Response,
    months_ago: Optional[str] = Query(None, alias="monthsAgo", description="Whole months back (>= 1)"),
    store: SalesStore = Depends(get_store),
) -> DashboardSummaryPayload:
    """
    Month-over-month comparison cards and the top supplier.
    """
    payload = await build_dashboard_summary(store, months_ago=parse_months_ago(months_ago))
    response.headers["Cache-Control"] = SUMMARY_CACHE_CONTROL
    return payload
