"""
FastAPI Production Application

Main entry point for the Sales Analytics API.

Run with:
    uvicorn sales_analytics.main:app
"""

import uvicorn

from sales_analytics.config import get_settings
from sales_analytics.serving import create_api_app

settings = get_settings()

app = create_api_app()


def run() -> None:
    """Console entry point."""
    uvicorn.run(
        "sales_analytics.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_config=None,
    )


if __name__ == "__main__":
    run()
