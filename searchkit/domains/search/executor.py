"""
Search Executor - Runs structured queries and maps hits to typed records.

A failed build (no query), a backend error or a payload that does not fit
the result type never raises here: the call degrades to an empty result and
the reason is logged and kept on the returned SearchOutcome.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TypeVar

from pydantic import BaseModel

from searchkit.config.errors import ExecutionError

from .contracts import SearchBackend
from .models import OutcomeStatus, SearchHit, SearchOutcome, StructuredQuery, fill_missing

logger = logging.getLogger(__name__)

__all__ = ["SearchExecutor", "map_hits"]

T = TypeVar("T", bound=BaseModel)


def map_hits(hits: Iterable[SearchHit], result_type: type[T]) -> list[T]:
    """
    Deserialize hit payloads into ``result_type``, preserving order.

    Any pydantic model is accepted; missing or null declared fields are
    filled the same way ResultRecord does.
    """
    return [result_type.model_validate(fill_missing(result_type, hit.source)) for hit in hits]


class SearchExecutor:
    """
    Executes queries through a search backend.

    Example:
        >>> executor = SearchExecutor(backend)
        >>> vehicles = await executor.execute(query, Vehicle)
    """

    def __init__(self, backend: SearchBackend) -> None:
        """
        Initialize executor.

        Args:
            backend: Client used to run queries
        """
        self._backend = backend

    @property
    def backend(self) -> SearchBackend:
        return self._backend

    async def run(
        self,
        query: StructuredQuery | None,
        result_type: type[T],
    ) -> SearchOutcome[T]:
        """
        Execute a query and report how it ended.

        Args:
            query: Query from the builder; None when building failed
            result_type: Record type each hit is mapped onto

        Returns:
            SearchOutcome with records on success, the error otherwise
        """
        if query is None:
            logger.error("Failed to build search request")
            return SearchOutcome(status=OutcomeStatus.NO_QUERY)

        try:
            response = await self._backend.search(query)
            records = map_hits(response.hits, result_type)
        except Exception as e:
            logger.error("Search on index %s failed: %s", query.index, e, exc_info=True)
            error = ExecutionError(
                str(e),
                {"index": query.index, "error_type": type(e).__name__},
            )
            return SearchOutcome(
                status=OutcomeStatus.EXECUTION_FAILED,
                error=error,
                query=query,
            )

        logger.debug(
            "Search on index %s: %d hits mapped to %s (total=%d, took=%dms)",
            query.index,
            len(records),
            result_type.__name__,
            response.total,
            response.took_ms,
        )
        return SearchOutcome(status=OutcomeStatus.OK, records=records, query=query)

    async def execute(
        self,
        query: StructuredQuery | None,
        result_type: type[T],
    ) -> list[T]:
        """Execute a query; any failure yields an empty list."""
        outcome = await self.run(query, result_type)
        return outcome.records
