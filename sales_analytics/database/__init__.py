"""
Database Module
"""
from .connection import init_database, close_database
from .models import Base, SalesTransaction
from .store import SalesStore

__all__ = [
    "init_database",
    "close_database",
    "Base",
    "SalesTransaction",
    "SalesStore",
]
