"""
Analytics Module

Aggregation and normalization engine behind the dashboard endpoints.
"""
from .commercial_responsibles import (
    CommercialResponsiblesOptions,
    build_commercial_responsibles_payload,
)
from .dashboard_summary import build_dashboard_summary
from .exceptions import AnalyticsError, IngestionError, InvalidParameterError, InvalidPartnerKindError
from .most_sold_products import build_most_sold_products_payload
from .net_margin import build_net_margin_payload
from .sales_listing import build_sales_page
from .top_partners import TopPartnersOptions, build_top_partners_payload

__all__ = [
    "AnalyticsError",
    "IngestionError",
    "InvalidParameterError",
    "InvalidPartnerKindError",
    "CommercialResponsiblesOptions",
    "TopPartnersOptions",
    "build_commercial_responsibles_payload",
    "build_dashboard_summary",
    "build_most_sold_products_payload",
    "build_net_margin_payload",
    "build_sales_page",
    "build_top_partners_payload",
]
