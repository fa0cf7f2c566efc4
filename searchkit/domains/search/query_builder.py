"""
Query Builder - Translates search requests into structured queries.

Strategies:
- handle: caller-supplied boolean filter in filter context
- multi_field: best-fields match over the requested fields
- match_phrase / match_phrase_prefix: phrase matching with slop
- regexp / wildcard: case-insensitive pattern matching in filter context
- fuzzy: most-fields match with AUTO fuzziness
- boosting: most-fields match weighted by field_weights

Pure and side-effect free: no I/O, nothing cached between calls except the
per-type source field list.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from pydantic import BaseModel

from searchkit.config.errors import (
    MAX_PAGE_SIZE,
    EmptyQueryText,
    PageSizeExceeded,
    QueryAssemblyError,
    SearchKitError,
)

from .dsl import (
    BoolQuery,
    MatchQuery,
    MultiMatchQuery,
    MultiMatchType,
    Query,
    RegexpQuery,
    SortClause,
    WildcardQuery,
    boosted_field,
)
from .models import SearchRequest, SortDirection, Strategy, StructuredQuery, source_fields

logger = logging.getLogger(__name__)

__all__ = [
    "QueryBuilder",
    "validate_request",
    "compute_offset",
    "build_search_request",
]

ALL_FIELDS = "*"
OR = "or"
AUTO_FUZZINESS = "AUTO"

ClauseFactory = Callable[[SearchRequest], "Query | None"]


def validate_request(request: SearchRequest) -> None:
    """
    Check builder preconditions, in order.

    Raises:
        PageSizeExceeded: page_size above the hard ceiling
        EmptyQueryText: text_search empty or whitespace only
    """
    if request.page_size > MAX_PAGE_SIZE:
        raise PageSizeExceeded(request.page_size)
    if not request.text_search or not request.text_search.strip():
        raise EmptyQueryText()


def compute_offset(page: int, page_size: int) -> int:
    """Offset of the first hit for a page; non-positive pages start at 0."""
    return 0 if page <= 0 else page * page_size


def _fields(request: SearchRequest) -> list[str]:
    """Requested fields, rejecting blank names."""
    fields = list(request.fields)
    for name in fields:
        if not name or not name.strip():
            raise ValueError(f"Invalid field name: {name!r}")
    return fields


class QueryBuilder:
    """
    Builds a StructuredQuery per strategy.

    Every method validates the request first and raises the typed errors of
    ``searchkit.config.errors``. ``None`` means the strategy produced no
    query for the request (e.g. wildcard without fields) and nothing should
    be executed.

    Example:
        >>> builder = QueryBuilder()
        >>> request = SearchRequest(text_search="jeep", fields=("name",))
        >>> query = builder.multi_field("vehicles", request)
        >>> query.to_body()["query"]
        {'match': {'name': {'query': 'jeep', 'operator': 'or'}}}
    """

    def build(
        self,
        strategy: Strategy | str,
        index: str,
        request: SearchRequest,
        *,
        bool_filter: Query | None = None,
        result_type: type[BaseModel] | None = None,
        source: Sequence[str] | None = None,
    ) -> StructuredQuery | None:
        """
        Build a query for ``strategy``.

        Args:
            strategy: Strategy member or its value
            index: Target index name
            request: Search request
            bool_filter: Caller filter (handle strategy only)
            result_type: Result type whose declared fields drive source filtering
            source: Explicit source field list, overrides result_type

        Returns:
            StructuredQuery, or None when the strategy yields no query
        """
        strategy = Strategy(strategy)
        if strategy is Strategy.HANDLE:
            return self.handle(index, request, bool_filter, result_type, source)

        factories: dict[Strategy, ClauseFactory] = {
            Strategy.MULTI_FIELD: self._multi_field_clause,
            Strategy.MATCH_PHRASE: self._match_phrase_clause,
            Strategy.MATCH_PHRASE_PREFIX: self._match_phrase_prefix_clause,
            Strategy.REGEXP: self._regexp_clause,
            Strategy.FUZZY: self._fuzzy_clause,
            Strategy.WILDCARD: self._wildcard_clause,
            Strategy.BOOSTING: self._boosting_clause,
        }
        return self._assemble(strategy, index, request, factories[strategy], result_type, source)

    def handle(
        self,
        index: str,
        request: SearchRequest,
        bool_filter: Query | None,
        result_type: type[BaseModel] | None = None,
        source: Sequence[str] | None = None,
    ) -> StructuredQuery | None:
        """Wrap a caller-built boolean filter in filter context."""

        def clause(_: SearchRequest) -> Query:
            if bool_filter is None:
                raise ValueError("handle strategy requires a boolean filter")
            return BoolQuery(filter=[bool_filter])

        return self._assemble(Strategy.HANDLE, index, request, clause, result_type, source)

    def multi_field(
        self,
        index: str,
        request: SearchRequest,
        result_type: type[BaseModel] | None = None,
        source: Sequence[str] | None = None,
    ) -> StructuredQuery | None:
        return self.build(Strategy.MULTI_FIELD, index, request, result_type=result_type, source=source)

    def match_phrase(
        self,
        index: str,
        request: SearchRequest,
        result_type: type[BaseModel] | None = None,
        source: Sequence[str] | None = None,
    ) -> StructuredQuery | None:
        return self.build(Strategy.MATCH_PHRASE, index, request, result_type=result_type, source=source)

    def match_phrase_prefix(
        self,
        index: str,
        request: SearchRequest,
        result_type: type[BaseModel] | None = None,
        source: Sequence[str] | None = None,
    ) -> StructuredQuery | None:
        return self.build(
            Strategy.MATCH_PHRASE_PREFIX, index, request, result_type=result_type, source=source
        )

    def regexp(
        self,
        index: str,
        request: SearchRequest,
        result_type: type[BaseModel] | None = None,
        source: Sequence[str] | None = None,
    ) -> StructuredQuery | None:
        return self.build(Strategy.REGEXP, index, request, result_type=result_type, source=source)

    def fuzzy(
        self,
        index: str,
        request: SearchRequest,
        result_type: type[BaseModel] | None = None,
        source: Sequence[str] | None = None,
    ) -> StructuredQuery | None:
        return self.build(Strategy.FUZZY, index, request, result_type=result_type, source=source)

    def wildcard(
        self,
        index: str,
        request: SearchRequest,
        result_type: type[BaseModel] | None = None,
        source: Sequence[str] | None = None,
    ) -> StructuredQuery | None:
        return self.build(Strategy.WILDCARD, index, request, result_type=result_type, source=source)

    def boosting(
        self,
        index: str,
        request: SearchRequest,
        result_type: type[BaseModel] | None = None,
        source: Sequence[str] | None = None,
    ) -> StructuredQuery | None:
        return self.build(Strategy.BOOSTING, index, request, result_type=result_type, source=source)

    # --- Shared assembly ---

    def _assemble(
        self,
        strategy: Strategy,
        index: str,
        request: SearchRequest,
        factory: ClauseFactory,
        result_type: type[BaseModel] | None,
        source: Sequence[str] | None,
    ) -> StructuredQuery | None:
        validate_request(request)

        try:
            clause = factory(request)
        except SearchKitError:
            raise
        except Exception as e:
            raise QueryAssemblyError(
                f"Failed to assemble {strategy.value} query: {e}",
                {"strategy": strategy.value, "index": index},
            ) from e

        if clause is None:
            logger.debug("Strategy %s produced no query for index %s", strategy.value, index)
            return None

        sort = None
        if request.sort_field:
            direction = request.sort_direction or SortDirection.ASC
            sort = SortClause(field=request.sort_field, order=direction.value)

        return StructuredQuery(
            index=index,
            offset=compute_offset(request.page, request.page_size),
            limit=request.page_size,
            query=clause,
            sort=sort,
            source=tuple(source) if source is not None else source_fields(result_type),
            strategy=strategy,
        )

    # --- Strategy clauses ---

    @staticmethod
    def _multi_field_clause(request: SearchRequest) -> Query:
        fields = _fields(request)
        if not fields:
            return MultiMatchQuery(
                query=request.text_search,
                fields=[ALL_FIELDS],
                type=MultiMatchType.BEST_FIELDS,
                operator=OR,
            )
        if len(fields) == 1:
            return MatchQuery(field=fields[0], query=request.text_search, operator=OR)
        return MultiMatchQuery(
            query=request.text_search,
            fields=fields,
            type=MultiMatchType.BEST_FIELDS,
            operator=OR,
        )

    @staticmethod
    def _match_phrase_clause(request: SearchRequest) -> Query:
        return MultiMatchQuery(
            query=request.text_search,
            fields=_fields(request),
            type=MultiMatchType.PHRASE,
            operator=OR,
            slop=request.slop,
        )

    @staticmethod
    def _match_phrase_prefix_clause(request: SearchRequest) -> Query | None:
        fields = _fields(request)
        if not fields:
            return None
        if len(fields) > 1:
            # Only the first field is searched; later ones are dropped.
            logger.warning(
                "Phrase-prefix search uses only the first field %r, ignoring %s",
                fields[0],
                fields[1:],
            )
        return MultiMatchQuery(
            query=request.text_search,
            fields=[fields[0]],
            type=MultiMatchType.PHRASE_PREFIX,
            slop=request.slop,
            max_expansions=request.max_expansions,
        )

    @staticmethod
    def _regexp_clause(request: SearchRequest) -> Query | None:
        fields = _fields(request)
        if not fields:
            return None
        should: list[Query] = [
            RegexpQuery(field=name, value=request.text_search, case_insensitive=True)
            for name in fields
        ]
        return BoolQuery(filter=[BoolQuery(should=should)])

    @staticmethod
    def _fuzzy_clause(request: SearchRequest) -> Query:
        return MultiMatchQuery(
            query=request.text_search,
            fields=_fields(request),
            type=MultiMatchType.MOST_FIELDS,
            operator=OR,
            fuzziness=AUTO_FUZZINESS,
        )

    @staticmethod
    def _wildcard_clause(request: SearchRequest) -> Query | None:
        fields = _fields(request)
        if not fields:
            return None
        should: list[Query] = [
            WildcardQuery(field=name, value=request.text_search, case_insensitive=True)
            for name in fields
        ]
        return BoolQuery(filter=[BoolQuery(should=should)])

    @staticmethod
    def _boosting_clause(request: SearchRequest) -> Query:
        weighted = []
        for name, weight in request.field_weights.items():
            if weight <= 0:
                raise ValueError(f"Field weight must be positive: {name}={weight}")
            weighted.append(boosted_field(name, weight))
        return MultiMatchQuery(
            query=request.text_search,
            fields=weighted,
            type=MultiMatchType.MOST_FIELDS,
            operator=OR,
        )


_default_builder = QueryBuilder()


def build_search_request(
    strategy: Strategy | str,
    index: str,
    request: SearchRequest,
    *,
    bool_filter: Query | None = None,
    result_type: type[BaseModel] | None = None,
    source: Sequence[str] | None = None,
) -> StructuredQuery | None:
    """
    Build a query, collapsing every failure into ``None``.

    Compatibility entry point: validation and assembly errors are logged,
    not raised, so callers cannot tell them apart from "no query". Use
    QueryBuilder directly for typed errors.
    """
    try:
        return _default_builder.build(
            strategy,
            index,
            request,
            bool_filter=bool_filter,
            result_type=result_type,
            source=source,
        )
    except Exception as e:
        logger.error(
            "Failed to build %s search request: %s",
            getattr(strategy, "value", strategy),
            e,
            exc_info=True,
        )
        return None
