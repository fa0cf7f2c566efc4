"""
Error Taxonomy - Error codes for query building and search execution.

Usage:
    from searchkit.config.errors import ErrorCode, SearchKitError

    raise PageSizeExceeded(page_size=5000)
"""

from __future__ import annotations

from enum import Enum
from typing import Any

MAX_PAGE_SIZE = 1000


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error reporting."""

    # Request validation
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PAGE_SIZE_EXCEEDED = "PAGE_SIZE_EXCEEDED"
    EMPTY_QUERY_TEXT = "EMPTY_QUERY_TEXT"

    # Query assembly
    QUERY_ASSEMBLY_FAILED = "QUERY_ASSEMBLY_FAILED"

    # Execution
    SEARCH_EXECUTION_FAILED = "SEARCH_EXECUTION_FAILED"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"


class SearchKitError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a serializable dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(SearchKitError):
    """Search request violates a builder precondition."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ) -> None:
        super().__init__(code, message, details)


class PageSizeExceeded(ValidationError):
    """Requested page size is above the hard ceiling."""

    def __init__(self, page_size: int) -> None:
        super().__init__(
            f"Page size must be less than or equal to {MAX_PAGE_SIZE}",
            {"page_size": page_size, "max_page_size": MAX_PAGE_SIZE},
            code=ErrorCode.PAGE_SIZE_EXCEEDED,
        )


class EmptyQueryText(ValidationError):
    """Search text is empty or only whitespace."""

    def __init__(self) -> None:
        super().__init__(
            "Text search must not be empty or blank",
            code=ErrorCode.EMPTY_QUERY_TEXT,
        )


class QueryAssemblyError(SearchKitError):
    """Unexpected failure while assembling the query clause tree."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.QUERY_ASSEMBLY_FAILED, message, details)


class ExecutionError(SearchKitError):
    """Backend call or hit deserialization failed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_EXECUTION_FAILED, message, details)


class BackendUnavailableError(SearchKitError):
    """Search backend client could not be created."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.BACKEND_UNAVAILABLE, message, details)
