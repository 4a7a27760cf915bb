"""
FastAPI Application Factory

Creates and configures the API application: lifespan-managed store,
middleware, error mapping and routers.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from sales_analytics.analytics.exceptions import IngestionError, InvalidParameterError
from sales_analytics.config import get_settings
from sales_analytics.config.logging import configure_logging
from sales_analytics.database.connection import close_database, init_database
from sales_analytics.database.store import SalesStore
from sales_analytics.serving.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from sales_analytics.serving.api.routes import (
    analytics_router,
    dashboard_router,
    health_router,
    metrics_router,
    sales_router,
)

logger = structlog.get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Client-input errors become 400 responses, anything else a generic 500."""

    @app.exception_handler(InvalidParameterError)
    async def invalid_parameter_handler(request: Request, exc: InvalidParameterError) -> JSONResponse:
        logger.info("Rejected request parameter", parameter=exc.parameter, error=exc.message)
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(IngestionError)
    async def ingestion_error_handler(request: Request, exc: IngestionError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "error": exc.message,
                "sheet": exc.sheet,
                "inserted": 0,
                "errors": exc.errors,
            },
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled error",
            path=request.url.path,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(status_code=500, content={"error": "Unexpected server error."})


def create_api_app(database_url: Optional[str] = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        database_url: Override the configured database URL

    Returns:
        Configured FastAPI app instance
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        configure_logging()
        logger.info("Starting Sales Analytics API", environment=settings.app_env)

        engine = await init_database(database_url)
        app.state.store = SalesStore(engine)

        yield

        logger.info("Shutting down...")
        await close_database()

    app = FastAPI(
        title="Sales Analytics API",
        description="Aggregations over uploaded sales transactions",
        version=settings.version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(metrics_router, prefix="/api/v1/metrics", tags=["Metrics"])
    app.include_router(analytics_router, prefix="/api/v1/analytics", tags=["Analytics"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["Dashboard"])
    app.include_router(sales_router, prefix="/api/v1/sales", tags=["Sales"])

    if settings.monitoring.enable_metrics:
        app.mount("/metrics", make_asgi_app())

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Sales Analytics API",
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    return app
