"""
API Routes Module
"""
from .analytics import router as analytics_router
from .dashboard import router as dashboard_router
from .health import router as health_router
from .metrics import router as metrics_router
from .sales import router as sales_router

__all__ = [
    "analytics_router",
    "dashboard_router",
    "health_router",
    "metrics_router",
    "sales_router",
]
