"""
Search Domain - Full-text query construction and execution.

This domain handles:
- Search request model and validation
- Strategy-specific query assembly (match, phrase, fuzzy, wildcard, ...)
- Pagination, sort and source filtering
- Query execution and typed result mapping
"""

from .contracts import SearchBackend
from .dsl import (
    BoolQuery,
    ExistsQuery,
    MatchAllQuery,
    MatchQuery,
    MultiMatchQuery,
    MultiMatchType,
    PrefixQuery,
    Query,
    RangeQuery,
    RegexpQuery,
    SortClause,
    TermQuery,
    TermsQuery,
    WildcardQuery,
    bool_query,
    match,
    range_query,
    term,
)
from .executor import SearchExecutor, map_hits
from .models import (
    OutcomeStatus,
    ResultRecord,
    SearchHit,
    SearchOutcome,
    SearchRequest,
    SearchResponse,
    SortDirection,
    Strategy,
    StructuredQuery,
    fill_missing,
    source_fields,
)
from .query_builder import QueryBuilder, build_search_request, compute_offset, validate_request
from .service import SearchService

__all__ = [
    # Contracts
    "SearchBackend",
    # Models
    "SearchRequest",
    "SortDirection",
    "Strategy",
    "StructuredQuery",
    "SearchHit",
    "SearchResponse",
    "ResultRecord",
    "OutcomeStatus",
    "SearchOutcome",
    "source_fields",
    "fill_missing",
    # DSL
    "Query",
    "MatchAllQuery",
    "MatchQuery",
    "MultiMatchQuery",
    "MultiMatchType",
    "TermQuery",
    "TermsQuery",
    "RangeQuery",
    "ExistsQuery",
    "PrefixQuery",
    "WildcardQuery",
    "RegexpQuery",
    "BoolQuery",
    "SortClause",
    "bool_query",
    "match",
    "range_query",
    "term",
    # Builder / executor
    "QueryBuilder",
    "build_search_request",
    "compute_offset",
    "validate_request",
    "SearchExecutor",
    "map_hits",
    "SearchService",
]
