"""
Database Models - Sales Fact Table

The analytics service works over a single flat fact table: one immutable row
per sales transaction as it appeared in the latest spreadsheet upload.
Every upload replaces the whole table, so `transaction_id` carries no
chronological meaning; time ordering always comes from `delivery_date`.

Monetary and quantity columns are stored as Numeric to avoid floating-point
drift in financial sums. They are converted to float only when aggregated.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


# Precision shared by every amount/quantity column
AMOUNT = Numeric(18, 6)


class SalesTransaction(Base):
    """
    Sales Transaction Fact Table

    Categorical columns are stored exactly as uploaded (untrimmed); the
    aggregation layer trims them when grouping.
    `direct_sales`, `commission_altona` and `total_net_margin_eur` are
    mandatory; every other numeric column is optional and counts as zero in sums.
    """
    __tablename__ = "sales_transactions"

    transaction_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Categorical attributes
    commercial_responsible: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    order_type: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    supplier: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    billing_sign: Mapped[Optional[str]] = mapped_column(String(255))
    delivery_client: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    delivery_circuit: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    product_category: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    product_family: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    product_reference: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    purchase_currency: Mapped[Optional[str]] = mapped_column(String(16))

    delivery_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    # Measures
    quantity: Mapped[Optional[Decimal]] = mapped_column(AMOUNT)
    sales_altona: Mapped[Optional[Decimal]] = mapped_column(AMOUNT)
    purchases_altona_eur: Mapped[Optional[Decimal]] = mapped_column(AMOUNT)
    purchases_purchase_currency: Mapped[Optional[Decimal]] = mapped_column(AMOUNT)
    direct_sales: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    commission_altona: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)
    total_pub_budget: Mapped[Optional[Decimal]] = mapped_column(AMOUNT)
    rfa_on_resale_orders: Mapped[Optional[Decimal]] = mapped_column(AMOUNT)
    logistics_cost_altona: Mapped[Optional[Decimal]] = mapped_column(AMOUNT)
    prescriber_commission: Mapped[Optional[Decimal]] = mapped_column(AMOUNT)
    total_net_margin_eur: Mapped[Decimal] = mapped_column(AMOUNT, nullable=False)

    __table_args__ = (
        Index("ix_sales_transactions_delivery_date", "delivery_date"),
        Index("ix_sales_transactions_supplier", "supplier"),
        Index("ix_sales_transactions_product_category", "product_category"),
        Index("ix_sales_transactions_commercial_responsible", "commercial_responsible"),
    )

    def __repr__(self) -> str:
        return (
            f"<SalesTransaction(id={self.transaction_id}, "
            f"delivery_date={self.delivery_date}, supplier={self.supplier!r})>"
        )


# Column order of the uploaded spreadsheet extracts (positional mapping)
FACT_COLUMNS = (
    "commercial_responsible",
    "order_type",
    "supplier",
    "billing_sign",
    "delivery_client",
    "delivery_circuit",
    "product_category",
    "product_family",
    "product_reference",
    "delivery_date",
    "quantity",
    "sales_altona",
    "purchases_altona_eur",
    "purchases_purchase_currency",
    "purchase_currency",
    "direct_sales",
    "commission_altona",
    "total_pub_budget",
    "rfa_on_resale_orders",
    "logistics_cost_altona",
    "prescriber_commission",
    "total_net_margin_eur",
)

REQUIRED_NUMERIC_COLUMNS = (
    "direct_sales",
    "commission_altona",
    "total_net_margin_eur",
)

OPTIONAL_NUMERIC_COLUMNS = (
    "quantity",
    "sales_altona",
    "purchases_altona_eur",
    "purchases_purchase_currency",
    "total_pub_budget",
    "rfa_on_resale_orders",
    "logistics_cost_altona",
    "prescriber_commission",
)

NULLABLE_TEXT_COLUMNS = ("billing_sign", "purchase_currency")
