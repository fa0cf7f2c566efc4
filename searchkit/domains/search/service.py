"""
Search Service - One entry point per strategy over builder and executor.

``search()`` returns a SearchOutcome so callers can tell validation and
assembly failures from backend errors and from legitimately empty results.
The ``*_search`` methods keep the list-returning contract where every
failure reads as "no results".
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel

from searchkit.config.errors import QueryAssemblyError, ValidationError

from .contracts import SearchBackend
from .dsl import Query
from .executor import SearchExecutor
from .models import OutcomeStatus, SearchOutcome, SearchRequest, Strategy
from .query_builder import QueryBuilder

if TYPE_CHECKING:
    from searchkit.config.settings import Settings

logger = logging.getLogger(__name__)

__all__ = ["SearchService"]

T = TypeVar("T", bound=BaseModel)


class SearchService:
    """
    Strategy-level search API.

    Example:
        >>> service = SearchService(backend)
        >>> request = SearchRequest(text_search="jeep", fields=("name", "description"))
        >>> vehicles = await service.multi_search("vehicles", request, Vehicle)
    """

    def __init__(
        self,
        backend: SearchBackend,
        builder: QueryBuilder | None = None,
    ) -> None:
        """
        Initialize search service.

        Args:
            backend: Search backend used by the executor
            builder: Query builder (default: new QueryBuilder)
        """
        self._builder = builder or QueryBuilder()
        self._executor = SearchExecutor(backend)

    @classmethod
    def from_settings(cls, settings: Settings) -> SearchService:
        """Create a service backed by Elasticsearch as configured."""
        from searchkit.adapters.elasticsearch import ElasticsearchBackend

        return cls(ElasticsearchBackend.from_settings(settings))

    @property
    def builder(self) -> QueryBuilder:
        return self._builder

    @property
    def executor(self) -> SearchExecutor:
        return self._executor

    async def close(self) -> None:
        """Close the underlying backend."""
        await self._executor.backend.close()

    async def search(
        self,
        strategy: Strategy | str,
        index: str,
        request: SearchRequest,
        result_type: type[T],
        *,
        bool_filter: Query | None = None,
        source: Sequence[str] | None = None,
    ) -> SearchOutcome[T]:
        """
        Build and execute a query, reporting failures as outcomes.

        Args:
            strategy: Query construction strategy
            index: Target index
            request: Search request
            result_type: Record type for hits
            bool_filter: Caller filter (handle strategy only)
            source: Explicit source fields, overrides result_type

        Returns:
            SearchOutcome carrying records or the error that stopped the call
        """
        try:
            query = self._builder.build(
                strategy,
                index,
                request,
                bool_filter=bool_filter,
                result_type=result_type,
                source=source,
            )
        except ValidationError as e:
            logger.warning("Rejected search request for index %s: %s", index, e.message)
            return SearchOutcome(status=OutcomeStatus.INVALID_REQUEST, error=e)
        except QueryAssemblyError as e:
            logger.error("Failed to build search request: %s", e, exc_info=True)
            return SearchOutcome(status=OutcomeStatus.ASSEMBLY_FAILED, error=e)

        if query is None:
            logger.info("No query produced for %s search on index %s", Strategy(strategy).value, index)
            return SearchOutcome(status=OutcomeStatus.NO_QUERY)

        return await self._executor.run(query, result_type)

    # --- List-returning entry points ---

    async def _search_list(
        self,
        strategy: Strategy,
        index: str,
        request: SearchRequest,
        result_type: type[T],
        bool_filter: Query | None = None,
    ) -> list[T]:
        outcome = await self.search(strategy, index, request, result_type, bool_filter=bool_filter)
        return outcome.records

    async def handle_search(
        self,
        index: str,
        request: SearchRequest,
        bool_filter: Query,
        result_type: type[T],
    ) -> list[T]:
        """Search with a caller-built boolean filter."""
        return await self._search_list(Strategy.HANDLE, index, request, result_type, bool_filter)

    async def multi_search(self, index: str, request: SearchRequest, result_type: type[T]) -> list[T]:
        """Multi-field match search."""
        return await self._search_list(Strategy.MULTI_FIELD, index, request, result_type)

    async def regexp_search(self, index: str, request: SearchRequest, result_type: type[T]) -> list[T]:
        """Case-insensitive regular expression search."""
        return await self._search_list(Strategy.REGEXP, index, request, result_type)

    async def fuzzy_search(self, index: str, request: SearchRequest, result_type: type[T]) -> list[T]:
        """Typo-tolerant search."""
        return await self._search_list(Strategy.FUZZY, index, request, result_type)

    async def wildcard_search(self, index: str, request: SearchRequest, result_type: type[T]) -> list[T]:
        """Case-insensitive wildcard search."""
        return await self._search_list(Strategy.WILDCARD, index, request, result_type)

    async def match_phrase_search(
        self, index: str, request: SearchRequest, result_type: type[T]
    ) -> list[T]:
        """Phrase search with slop."""
        return await self._search_list(Strategy.MATCH_PHRASE, index, request, result_type)

    async def match_phrase_prefix_search(
        self, index: str, request: SearchRequest, result_type: type[T]
    ) -> list[T]:
        """Phrase-prefix search on the first requested field."""
        return await self._search_list(Strategy.MATCH_PHRASE_PREFIX, index, request, result_type)

    async def boosting_search(
        self, index: str, request: SearchRequest, result_type: type[T]
    ) -> list[T]:
        """Most-fields search weighted by field_weights."""
        return await self._search_list(Strategy.BOOSTING, index, request, result_type)
