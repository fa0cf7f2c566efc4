"""
Tests for the search executor.
"""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest
from pydantic import BaseModel

from searchkit.config.errors import ErrorCode, ExecutionError

from .dsl import MatchAllQuery
from .executor import SearchExecutor, map_hits
from .models import (
    OutcomeStatus,
    ResultRecord,
    SearchHit,
    SearchResponse,
    StructuredQuery,
)


class IdName(ResultRecord):
    id: str
    name: str


class PlainIdName(BaseModel):
    id: str
    name: str


@pytest.fixture
def query() -> StructuredQuery:
    return StructuredQuery(index="vehicles", offset=0, limit=10, query=MatchAllQuery())


@pytest.fixture
def mock_backend() -> AsyncMock:
    """Create a mock backend returning two hits."""
    mock = AsyncMock()
    mock.search.return_value = SearchResponse(
        hits=[
            SearchHit(index="vehicles", id="1", score=2.0, source={"id": "1", "name": "a", "extra": "z"}),
            SearchHit(index="vehicles", id="2", score=1.0, source={"id": "2", "name": "b"}),
        ],
        total=2,
        took_ms=4,
    )
    return mock


def test_map_hits_preserves_order() -> None:
    """Test hits are mapped in backend order."""
    hits = [
        SearchHit(index="v", source={"id": "9", "name": "z"}),
        SearchHit(index="v", source={"id": "1", "name": "a"}),
    ]
    assert [r.id for r in map_hits(hits, IdName)] == ["9", "1"]


async def test_execute_maps_hits(mock_backend: AsyncMock, query: StructuredQuery) -> None:
    """Test hits are deserialized, ignoring unknown fields."""
    executor = SearchExecutor(mock_backend)

    records = await executor.execute(query, IdName)

    assert [r.model_dump() for r in records] == [
        {"id": "1", "name": "a"},
        {"id": "2", "name": "b"},
    ]
    mock_backend.search.assert_awaited_once_with(query)


async def test_run_reports_ok(mock_backend: AsyncMock, query: StructuredQuery) -> None:
    """Test a successful run carries records and the query."""
    outcome = await SearchExecutor(mock_backend).run(query, IdName)

    assert outcome.status is OutcomeStatus.OK
    assert outcome.query is query
    assert len(outcome.records) == 2
    assert outcome.error is None


async def test_execute_without_query_returns_empty(
    mock_backend: AsyncMock, caplog: pytest.LogCaptureFixture
) -> None:
    """Test a missing query is logged and never sent."""
    executor = SearchExecutor(mock_backend)

    with caplog.at_level(logging.ERROR):
        records = await executor.execute(None, IdName)

    assert records == []
    mock_backend.search.assert_not_awaited()
    assert "Failed to build search request" in caplog.text


async def test_run_without_query_is_no_query(mock_backend: AsyncMock) -> None:
    """Test the typed channel reports the missing query."""
    outcome = await SearchExecutor(mock_backend).run(None, IdName)
    assert outcome.status is OutcomeStatus.NO_QUERY
    assert outcome.error is None


async def test_backend_failure_returns_empty(
    mock_backend: AsyncMock, query: StructuredQuery, caplog: pytest.LogCaptureFixture
) -> None:
    """Test a backend error degrades to an empty list."""
    mock_backend.search.side_effect = ConnectionError("connection refused")
    executor = SearchExecutor(mock_backend)

    with caplog.at_level(logging.ERROR):
        records = await executor.execute(query, IdName)

    assert records == []
    assert "connection refused" in caplog.text


async def test_backend_failure_outcome(mock_backend: AsyncMock, query: StructuredQuery) -> None:
    """Test the typed channel keeps the execution error."""
    mock_backend.search.side_effect = TimeoutError("timed out")

    outcome = await SearchExecutor(mock_backend).run(query, IdName)

    assert outcome.status is OutcomeStatus.EXECUTION_FAILED
    assert isinstance(outcome.error, ExecutionError)
    assert outcome.error.code == ErrorCode.SEARCH_EXECUTION_FAILED
    assert outcome.error.details == {"index": "vehicles", "error_type": "TimeoutError"}
    assert outcome.records == []


async def test_one_malformed_hit_empties_whole_batch(
    mock_backend: AsyncMock, query: StructuredQuery
) -> None:
    """Test no partial results are returned when one hit fails to map."""
    mock_backend.search.return_value = SearchResponse(
        hits=[
            SearchHit(index="vehicles", source={"id": "1", "name": "a"}),
            SearchHit(index="vehicles", source={"id": ["not", "a", "string"], "name": "b"}),
        ]
    )

    outcome = await SearchExecutor(mock_backend).run(query, IdName)

    assert outcome.status is OutcomeStatus.EXECUTION_FAILED
    assert outcome.records == []


async def test_null_field_does_not_empty_batch(
    mock_backend: AsyncMock, query: StructuredQuery
) -> None:
    """Test a stored null for a required field reads as its empty value."""
    mock_backend.search.return_value = SearchResponse(
        hits=[
            SearchHit(index="vehicles", source={"id": "1", "name": "Jeep"}),
            SearchHit(index="vehicles", source={"id": "2", "name": None}),
        ]
    )

    records = await SearchExecutor(mock_backend).execute(query, IdName)

    assert [(r.id, r.name) for r in records] == [("1", "Jeep"), ("2", "")]


async def test_plain_model_result_type_fills_missing_fields(
    mock_backend: AsyncMock, query: StructuredQuery
) -> None:
    """Test result types not derived from ResultRecord get the same fill."""
    mock_backend.search.return_value = SearchResponse(
        hits=[SearchHit(index="vehicles", source={"id": "1", "extra": "z"})]
    )

    outcome = await SearchExecutor(mock_backend).run(query, PlainIdName)

    assert outcome.status is OutcomeStatus.OK
    assert [r.model_dump() for r in outcome.records] == [{"id": "1", "name": ""}]
