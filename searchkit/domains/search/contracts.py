"""
Search Contracts - Interfaces for search domain.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import SearchResponse, StructuredQuery


@runtime_checkable
class SearchBackend(Protocol):
    """Contract for search backends executing structured queries."""

    async def search(self, query: StructuredQuery) -> SearchResponse:
        """Run the query against its index and return the raw hits."""
        ...

    async def close(self) -> None:
        """Release client resources."""
        ...
