"""
Metrics API Endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from sales_analytics.analytics.net_margin import NetMarginPayload, build_net_margin_payload
from sales_analytics.analytics.params import parse_debug
from sales_analytics.database.store import SalesStore
from sales_analytics.serving.api.dependencies import get_store

router = APIRouter()


@router.get("/net-margin", response_model=NetMarginPayload, response_model_exclude_none=True)
async def get_net_margin(
    response: Response,
    debug: Optional[str] = Query(None, description="1 to echo the deduplicated rows"),
    store: SalesStore = Depends(get_store),
) -> NetMarginPayload:
    """
    Trailing-window net margin totals and zero-filled trend series.
    """
    payload = await build_net_margin_payload(store, debug=parse_debug(debug))
    response.headers["Cache-Control"] = "no-store"
    return payload
