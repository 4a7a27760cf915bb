"""
Route Dependencies
"""

from fastapi import Request

from sales_analytics.database.store import SalesStore


def get_store(request: Request) -> SalesStore:
    """Store created by the application lifespan."""
    return request.app.state.store
