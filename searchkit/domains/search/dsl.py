"""
Query DSL - Backend-neutral clause tree.

Every clause renders to the Elasticsearch query DSL through ``to_dict()``.
The query builder assembles these clauses; callers use them to author the
boolean filter passed to the ``handle`` strategy.

Example:
    >>> flt = BoolQuery().add_must(TermQuery("status", True))
    >>> _ = flt.add_filter(RangeQuery("created", gte="2020-01-01"))
    >>> flt.to_dict()["bool"]["must"]
    [{'term': {'status': True}}]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

__all__ = [
    "Query",
    "MatchAllQuery",
    "MatchQuery",
    "MultiMatchType",
    "MultiMatchQuery",
    "TermQuery",
    "TermsQuery",
    "RangeQuery",
    "ExistsQuery",
    "PrefixQuery",
    "WildcardQuery",
    "RegexpQuery",
    "BoolQuery",
    "SortClause",
    "boosted_field",
    "match",
    "term",
    "range_query",
    "bool_query",
]


class MultiMatchType(str, Enum):
    """Scoring / matching mode of a multi_match clause."""

    BEST_FIELDS = "best_fields"
    MOST_FIELDS = "most_fields"
    PHRASE = "phrase"
    PHRASE_PREFIX = "phrase_prefix"


@dataclass
class Query:
    """Base query class."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to query DSL dict."""
        raise NotImplementedError


@dataclass
class MatchAllQuery(Query):
    """Match all documents."""

    boost: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        if self.boost != 1.0:
            return {"match_all": {"boost": self.boost}}
        return {"match_all": {}}


@dataclass
class MatchQuery(Query):
    """Full-text match on a single field."""

    field: str
    query: str
    operator: str | None = None  # or, and
    fuzziness: str | None = None
    boost: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"query": self.query}
        if self.operator:
            body["operator"] = self.operator
        if self.fuzziness:
            body["fuzziness"] = self.fuzziness
        if self.boost != 1.0:
            body["boost"] = self.boost
        return {"match": {self.field: body}}


@dataclass
class MultiMatchQuery(Query):
    """Full-text match across several fields.

    ``fields`` may carry per-field boosts in the ``name^weight`` form.
    An empty ``fields`` list lets the backend fall back to its default fields.
    """

    query: str
    fields: list[str] = field(default_factory=list)
    type: MultiMatchType = MultiMatchType.BEST_FIELDS
    operator: str | None = None
    fuzziness: str | None = None
    slop: int | None = None
    max_expansions: int | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"query": self.query, "type": self.type.value}
        if self.fields:
            body["fields"] = list(self.fields)
        if self.operator:
            body["operator"] = self.operator
        if self.fuzziness:
            body["fuzziness"] = self.fuzziness
        if self.slop is not None:
            body["slop"] = self.slop
        if self.max_expansions is not None:
            body["max_expansions"] = self.max_expansions
        return {"multi_match": body}


@dataclass
class TermQuery(Query):
    """Exact term match."""

    field: str
    value: Any
    boost: float = 1.0

    def to_dict(self) -> dict[str, Any]:
        if self.boost != 1.0:
            return {"term": {self.field: {"value": self.value, "boost": self.boost}}}
        return {"term": {self.field: self.value}}


@dataclass
class TermsQuery(Query):
    """Match any of several exact terms."""

    field: str
    values: list[Any]

    def to_dict(self) -> dict[str, Any]:
        return {"terms": {self.field: list(self.values)}}


@dataclass
class RangeQuery(Query):
    """Range query."""

    field: str
    gte: Any | None = None
    gt: Any | None = None
    lte: Any | None = None
    lt: Any | None = None
    format: str | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        for key in ("gte", "gt", "lte", "lt"):
            value = getattr(self, key)
            if value is not None:
                body[key] = value
        if self.format:
            body["format"] = self.format
        return {"range": {self.field: body}}


@dataclass
class ExistsQuery(Query):
    """Field exists query."""

    field: str

    def to_dict(self) -> dict[str, Any]:
        return {"exists": {"field": self.field}}


@dataclass
class PrefixQuery(Query):
    """Prefix query."""

    field: str
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {"prefix": {self.field: self.value}}


@dataclass
class WildcardQuery(Query):
    """Wildcard pattern query (``*`` and ``?``)."""

    field: str
    value: str
    case_insensitive: bool = False

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"value": self.value}
        if self.case_insensitive:
            body["case_insensitive"] = True
        return {"wildcard": {self.field: body}}


@dataclass
class RegexpQuery(Query):
    """Regular expression query."""

    field: str
    value: str
    case_insensitive: bool = False
    flags: str | None = None

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"value": self.value}
        if self.flags:
            body["flags"] = self.flags
        if self.case_insensitive:
            body["case_insensitive"] = True
        return {"regexp": {self.field: body}}


@dataclass
class BoolQuery(Query):
    """Boolean compound query."""

    must: list[Query] = field(default_factory=list)
    must_not: list[Query] = field(default_factory=list)
    should: list[Query] = field(default_factory=list)
    filter: list[Query] = field(default_factory=list)
    minimum_should_match: int | str | None = None

    def add_must(self, query: Query) -> BoolQuery:
        self.must.append(query)
        return self

    def add_must_not(self, query: Query) -> BoolQuery:
        self.must_not.append(query)
        return self

    def add_should(self, query: Query) -> BoolQuery:
        self.should.append(query)
        return self

    def add_filter(self, query: Query) -> BoolQuery:
        self.filter.append(query)
        return self

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.must:
            body["must"] = [q.to_dict() for q in self.must]
        if self.must_not:
            body["must_not"] = [q.to_dict() for q in self.must_not]
        if self.should:
            body["should"] = [q.to_dict() for q in self.should]
        if self.filter:
            body["filter"] = [q.to_dict() for q in self.filter]
        if self.minimum_should_match is not None:
            body["minimum_should_match"] = self.minimum_should_match
        return {"bool": body}


@dataclass(frozen=True)
class SortClause:
    """Single-field sort."""

    field: str
    order: str = "asc"

    def to_dict(self) -> dict[str, Any]:
        return {self.field: {"order": self.order}}


def boosted_field(name: str, weight: float) -> str:
    """Render a field name with its relevance weight (``title^2``)."""
    rendered = repr(float(weight))
    if rendered.endswith(".0"):
        rendered = rendered[:-2]
    return f"{name}^{rendered}"


# ============================================================================
# Convenience constructors
# ============================================================================


def match(field_name: str, text: str, **kwargs: Any) -> MatchQuery:
    """Create a match clause."""
    return MatchQuery(field=field_name, query=text, **kwargs)


def term(field_name: str, value: Any, **kwargs: Any) -> TermQuery:
    """Create a term clause."""
    return TermQuery(field=field_name, value=value, **kwargs)


def range_query(field_name: str, **kwargs: Any) -> RangeQuery:
    """Create a range clause."""
    return RangeQuery(field=field_name, **kwargs)


def bool_query(
    must: list[Query] | None = None,
    must_not: list[Query] | None = None,
    should: list[Query] | None = None,
    filter: list[Query] | None = None,
    minimum_should_match: int | str | None = None,
) -> BoolQuery:
    """Create a bool clause from lists of clauses."""
    return BoolQuery(
        must=list(must or []),
        must_not=list(must_not or []),
        should=list(should or []),
        filter=list(filter or []),
        minimum_should_match=minimum_should_match,
    )
