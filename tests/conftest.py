"""
Test Suite Configuration
"""
from datetime import datetime
from typing import Any, Dict, Iterable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, insert

from sales_analytics.database.connection import create_engine_for_url
from sales_analytics.database.models import Base, SalesTransaction
from sales_analytics.database.store import SalesStore
from sales_analytics.serving import create_api_app


def make_row(**overrides: Any) -> Dict[str, Any]:
    """One fact row with neutral defaults for every column."""
    row = {
        "commercial_responsible": "Alice Martin",
        "order_type": "Commande",
        "supplier": "Acme",
        "billing_sign": "Client A",
        "delivery_client": "Client A",
        "delivery_circuit": "GMS",
        "product_category": "Boissons",
        "product_family": "Jus",
        "product_reference": "REF-1",
        "delivery_date": datetime(2024, 1, 15),
        "quantity": 1.0,
        "sales_altona": 0.0,
        "purchases_altona_eur": None,
        "purchases_purchase_currency": None,
        "purchase_currency": "EUR",
        "direct_sales": 0.0,
        "commission_altona": 0.0,
        "total_pub_budget": None,
        "rfa_on_resale_orders": None,
        "logistics_cost_altona": None,
        "prescriber_commission": None,
        "total_net_margin_eur": 0.0,
    }
    row.update(overrides)
    return row


@pytest.fixture
def database_path(tmp_path):
    return tmp_path / "sales.db"


@pytest.fixture
def database_url(database_path) -> str:
    return f"sqlite+aiosqlite:///{database_path}"


@pytest.fixture
def seed(database_path):
    """
    Create the schema and return a function inserting fact rows.

    Seeding goes through a synchronous engine so that both async tests and
    TestClient tests can share it.
    """
    engine = create_engine(f"sqlite:///{database_path}")
    Base.metadata.create_all(engine)

    def _seed(rows: Iterable[Dict[str, Any]]) -> None:
        rows = [make_row(**row) for row in rows]
        if not rows:
            return
        with engine.begin() as conn:
            conn.execute(insert(SalesTransaction), rows)

    yield _seed
    engine.dispose()


@pytest.fixture
async def store(database_url, seed):
    """SalesStore over the temporary database."""
    engine = create_engine_for_url(database_url)
    yield SalesStore(engine)
    await engine.dispose()


@pytest.fixture
def client(database_url, seed):
    """API client running the application lifespan."""
    app = create_api_app(database_url=database_url)
    with TestClient(app) as test_client:
        yield test_client
