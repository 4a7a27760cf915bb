"""
Database Connection Management

Async engine lifecycle with SQLAlchemy 2.0.
The engine is created once at process start, held for the process lifetime
and disposed on shutdown.
"""

import time
from typing import Any, Dict, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from sales_analytics.config import get_settings
from sales_analytics.database.models import Base

logger = structlog.get_logger(__name__)

# Global engine
_engine: Optional[AsyncEngine] = None


def create_engine_for_url(url: str, echo: bool = False) -> AsyncEngine:
    """
    Build an async engine for the given URL.

    SQLite (aiosqlite) keeps SQLAlchemy's default pool; server databases get
    the configured pool sizing and pre-ping.
    """
    settings = get_settings()
    engine_config: Dict[str, Any] = {"echo": echo}

    if not url.startswith("sqlite"):
        engine_config.update({
            "pool_pre_ping": True,  # Verify connections before use
            "pool_size": settings.database.pool_size,
            "max_overflow": settings.database.max_overflow,
            "pool_timeout": settings.database.pool_timeout,
        })

    return create_async_engine(url, **engine_config)


async def init_database(url: Optional[str] = None, create_tables: bool = True) -> AsyncEngine:
    """
    Initialize the database engine.

    Args:
        url: Override the configured database URL
        create_tables: Create the fact table when missing

    Returns:
        AsyncEngine: The initialized database engine
    """
    global _engine

    if _engine is not None:
        logger.warning("Database already initialized")
        return _engine

    settings = get_settings()
    database_url = url or settings.database.async_url
    _engine = create_engine_for_url(database_url, echo=settings.database.echo)

    try:
        async with _engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_tables:
                await conn.run_sync(Base.metadata.create_all)
        logger.info(
            "Database connection established",
            dialect=_engine.dialect.name,
            database=_engine.url.database,
        )
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    return _engine


async def close_database() -> None:
    """Dispose of the engine and its pooled connections."""
    global _engine

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        logger.info("Database connection pool closed")


async def check_database_health(engine: AsyncEngine) -> dict:
    """
    Check database health status.

    Returns:
        dict: Health status with latency information
    """
    try:
        start = time.perf_counter()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000

        return {
            "status": "healthy",
            "latency_ms": round(latency_ms, 2),
            "dialect": engine.dialect.name,
        }
    except Exception as e:
        logger.warning("Database health check failed", error=str(e))
        return {
            "status": "unhealthy",
            "error": str(e),
        }
