"""
Data Ingestion Module
"""
from .batch_loader import BatchLoader, LoadResult, LoadStatus, parse_rows, to_delivery_date

__all__ = [
    "BatchLoader",
    "LoadResult",
    "LoadStatus",
    "parse_rows",
    "to_delivery_date",
]
