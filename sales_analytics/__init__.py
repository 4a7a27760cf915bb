"""
Sales Analytics Dashboard

Aggregation service over uploaded sales transaction extracts.
"""

__version__ = "1.0.0"
