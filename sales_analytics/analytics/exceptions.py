"""
Analytics Exceptions

Client-input problems are raised as InvalidParameterError before any query
runs; the HTTP layer maps them to 400 responses. Everything else is treated as
an internal failure.
"""

from typing import List, Optional


class AnalyticsError(Exception):
    """Base class for analytics errors"""


class InvalidParameterError(AnalyticsError, ValueError):
    """A query parameter is malformed or out of range"""

    def __init__(self, message: str, parameter: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.parameter = parameter


class InvalidPartnerKindError(InvalidParameterError):
    """Partner kind is neither supplier nor client"""

    def __init__(self, kind: object):
        super().__init__(f"Unsupported partner kind: {kind}", parameter="kind")
        self.kind = kind


class IngestionError(AnalyticsError):
    """An upload produced no row that could be stored"""

    def __init__(self, message: str, errors: Optional[List[str]] = None, sheet: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        self.sheet = sheet
