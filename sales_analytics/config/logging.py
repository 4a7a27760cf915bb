"""
Logging Configuration for the Sales Analytics service

structlog over the standard logging module: every record, including the ones
emitted by uvicorn and SQLAlchemy, goes through the same processor chain and
is rendered as JSON (LOG_FORMAT=json) or as colored console lines.
"""

import logging
import sys
from typing import Any, List, Optional

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import ProcessorFormatter, add_log_level

from sales_analytics.config.settings import get_settings

# Loggers owned by servers and drivers; they get our handler instead of theirs
SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "gunicorn.error")

# Chatty at INFO, raised to WARNING unless explicitly asked for
NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio", "multipart")


def _shared_processors() -> List[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _build_handler(log_format: str, level: int) -> logging.Handler:
    renderer = JSONRenderer() if log_format == "json" else structlog.dev.ConsoleRenderer(colors=True)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        ProcessorFormatter(processor=renderer, foreign_pre_chain=_shared_processors())
    )
    return handler


def configure_logging(log_level: Optional[str] = None) -> None:
    """
    Configure structured logging for the application.

    Safe to call more than once; handlers installed by a previous call are
    replaced.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
    """
    settings = get_settings()
    level_name = (log_level or settings.monitoring.log_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    structlog.configure(
        processors=_shared_processors() + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = _build_handler(settings.monitoring.log_format, level)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers = [handler]
        server_logger.propagate = False
        server_logger.setLevel(level)

    for name in NOISY_LOGGERS:
        if name == "sqlalchemy.engine" and settings.database.echo:
            continue
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.get_logger(__name__).info(
        "Logging configured",
        level=level_name,
        format=settings.monitoring.log_format,
        environment=settings.app_env,
    )


def bind_request_context(request_id: str, **values: Any) -> None:
    """Start a fresh log context for one request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, **values)
