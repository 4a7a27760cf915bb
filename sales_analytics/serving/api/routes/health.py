"""
Health Check Endpoints

Provides health and readiness checks for orchestration systems.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from sales_analytics.config import get_settings
from sales_analytics.database.store import SalesStore
from sales_analytics.serving.api.dependencies import get_store

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(store: SalesStore = Depends(get_store)) -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Checks:
    - Application status
    - Database connectivity and fact table size
    """
    settings = get_settings()
    checks: Dict[str, Any] = {}

    db_health = await store.health()
    if db_health.get("status") == "healthy":
        db_health["rows"] = await store.count_rows()
    checks["database"] = db_health

    return HealthResponse(
        status="healthy" if db_health.get("status") == "healthy" else "unhealthy",
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(
    response: Response,
    store: SalesStore = Depends(get_store),
) -> Dict[str, str]:
    """
    Readiness probe endpoint.

    Returns 200 once the database answers, 503 otherwise.
    """
    db_health = await store.health()
    if db_health.get("status") != "healthy":
        response.status_code = 503
        return {"status": "not_ready", "reason": "database unavailable"}
    return {"status": "ready"}
