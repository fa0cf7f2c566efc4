"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    MAX_PAGE_SIZE,
    BackendUnavailableError,
    EmptyQueryText,
    ErrorCode,
    ExecutionError,
    PageSizeExceeded,
    QueryAssemblyError,
    SearchKitError,
    ValidationError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "MAX_PAGE_SIZE",
    "ErrorCode",
    "SearchKitError",
    "ValidationError",
    "PageSizeExceeded",
    "EmptyQueryText",
    "QueryAssemblyError",
    "ExecutionError",
    "BackendUnavailableError",
]
