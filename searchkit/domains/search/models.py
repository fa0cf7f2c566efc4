"""
Search Models - Data types for the search domain.
"""

from __future__ import annotations

import types
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from typing import Any, Generic, TypeVar, Union, get_args, get_origin

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from searchkit.config.errors import SearchKitError

from .dsl import Query, SortClause

__all__ = [
    "SortDirection",
    "Strategy",
    "SearchRequest",
    "StructuredQuery",
    "SearchHit",
    "SearchResponse",
    "ResultRecord",
    "OutcomeStatus",
    "SearchOutcome",
    "source_fields",
    "fill_missing",
]

T = TypeVar("T", bound=BaseModel)


class SortDirection(str, Enum):
    """Sort order; parsing accepts any letter case."""

    ASC = "asc"
    DESC = "desc"

    @classmethod
    def _missing_(cls, value: object) -> SortDirection | None:
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        return None


class Strategy(str, Enum):
    """Query construction strategies."""

    HANDLE = "handle"
    MULTI_FIELD = "multi_field"
    MATCH_PHRASE = "match_phrase"
    MATCH_PHRASE_PREFIX = "match_phrase_prefix"
    REGEXP = "regexp"
    FUZZY = "fuzzy"
    WILDCARD = "wildcard"
    BOOSTING = "boosting"


class SearchRequest(BaseModel):
    """Paginated search request.

    A plain data holder: page size ceiling and non-blank text are checked
    by the query builder, not here. The camelCase names of the wire format
    (``textSearch``, ``sortBy``, ``fieldsAndWeights`` ...) are accepted.
    """

    page: int = 0
    page_size: int = Field(
        default=50,
        validation_alias=AliasChoices("page_size", "size", "pageSize"),
    )
    text_search: str = Field(
        default="",
        validation_alias=AliasChoices("text_search", "textSearch"),
    )
    fields: tuple[str, ...] = ()
    field_weights: dict[str, float] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("field_weights", "fieldWeights", "fieldsAndWeights"),
    )
    sort_field: str | None = Field(
        default=None,
        validation_alias=AliasChoices("sort_field", "sortField", "sortBy"),
    )
    sort_direction: SortDirection | None = Field(
        default=None,
        validation_alias=AliasChoices("sort_direction", "sortDirection", "orderBy"),
    )
    slop: int = 10
    max_expansions: int = Field(
        default=10,
        validation_alias=AliasChoices("max_expansions", "maxExpansions"),
    )

    model_config = ConfigDict(frozen=True, extra="ignore")


@dataclass(frozen=True)
class StructuredQuery:
    """Backend-neutral search built for a single call."""

    index: str
    offset: int
    limit: int
    query: Query
    sort: SortClause | None = None
    source: tuple[str, ...] = ()
    strategy: Strategy | None = None

    def to_body(self) -> dict[str, Any]:
        """Render the search request body."""
        body: dict[str, Any] = {
            "query": self.query.to_dict(),
            "from": self.offset,
            "size": self.limit,
        }
        if self.sort is not None:
            body["sort"] = [self.sort.to_dict()]
        if self.source:
            body["_source"] = list(self.source)
        return body


class SearchHit(BaseModel):
    """One matching document."""

    index: str
    id: str | None = None
    score: float = 0.0
    source: dict[str, Any] = Field(default_factory=dict)


class SearchResponse(BaseModel):
    """Backend reply to a search."""

    hits: list[SearchHit] = Field(default_factory=list)
    total: int = 0
    took_ms: int = 0


_EMPTY_VALUES: dict[type, Any] = {
    str: "",
    int: 0,
    float: 0.0,
    bool: False,
}
_EMPTY_CONTAINERS: tuple[type, ...] = (list, tuple, set, frozenset, dict)


def _empty_value(annotation: Any) -> tuple[bool, Any]:
    """Return ``(known, value)`` for the empty value of a field annotation."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = get_args(annotation)
        if type(None) in args:
            return True, None
        annotation = args[0]
        origin = get_origin(annotation)

    target = origin or annotation
    if target in _EMPTY_VALUES:
        return True, _EMPTY_VALUES[target]
    if isinstance(target, type) and issubclass(target, _EMPTY_CONTAINERS):
        return True, target()
    if isinstance(target, type) and issubclass(target, BaseModel):
        return True, {}
    return False, None


def _nullable(annotation: Any) -> bool:
    if annotation is Any or annotation is None or annotation is type(None):
        return True
    origin = get_origin(annotation)
    return (origin is Union or origin is types.UnionType) and type(None) in get_args(annotation)


def fill_missing(model: type[BaseModel], data: Any) -> Any:
    """
    Prepare a stored payload for validation against ``model``.

    Required fields that are absent, or null where the type is not
    nullable, take the empty value of their type. A null for a field with
    a default is dropped so the default applies.
    """
    if not isinstance(data, dict):
        return data
    filled = dict(data)
    for name, info in model.model_fields.items():
        key = info.alias or name
        present = key if key in filled else name if name in filled else None
        if present is not None:
            if filled[present] is not None or _nullable(info.annotation):
                continue
            del filled[present]
        if not info.is_required():
            continue
        known, value = _empty_value(info.annotation)
        if known:
            filled[key] = value
    return filled


class ResultRecord(BaseModel):
    """Base class for typed search results.

    Unknown payload keys are ignored. Declared fields that are missing or
    null take the empty value of their type (see ``fill_missing``).
    """

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _fill_missing(cls, data: Any) -> Any:
        return fill_missing(cls, data)


@lru_cache(maxsize=None)
def source_fields(result_type: type[BaseModel] | None) -> tuple[str, ...]:
    """Stored field names to request for ``result_type``.

    Derived from the declared schema once per type. An empty tuple means the
    whole document is requested (no type, or a type accepting extra fields).
    """
    if result_type is None:
        return ()
    if result_type.model_config.get("extra") == "allow":
        return ()
    return tuple(info.alias or name for name, info in result_type.model_fields.items())


class OutcomeStatus(str, Enum):
    """How a search call ended."""

    OK = "ok"
    NO_QUERY = "no_query"
    INVALID_REQUEST = "invalid_request"
    ASSEMBLY_FAILED = "assembly_failed"
    EXECUTION_FAILED = "execution_failed"


@dataclass(frozen=True)
class SearchOutcome(Generic[T]):
    """Result-or-error value of a search call.

    Distinguishes "zero matches" (``OK`` with no records) from the failure
    modes that legacy entry points collapse into an empty list.
    """

    status: OutcomeStatus
    records: list[T] = field(default_factory=list)
    error: SearchKitError | None = None
    query: StructuredQuery | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    def raise_for_error(self) -> None:
        """Re-raise the captured error, if any."""
        if self.error is not None:
            raise self.error
