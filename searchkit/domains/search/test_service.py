"""
End-to-end tests for the search service over the in-memory backend.
"""

from __future__ import annotations

import pytest

from searchkit.adapters.elasticsearch import ElasticsearchBackend
from searchkit.adapters.memory import InMemorySearchBackend
from searchkit.config.errors import ExecutionError, PageSizeExceeded, QueryAssemblyError
from searchkit.config.settings import Settings

from .dsl import BoolQuery, TermQuery
from .models import OutcomeStatus, ResultRecord, SearchRequest, SortDirection, Strategy
from .service import SearchService

VEHICLES = [
    {
        "id": "1",
        "number": "29A-12345",
        "name": "Jeep Wrangler",
        "description": "Off-road SUV with removable doors",
        "status": True,
    },
    {
        "id": "2",
        "number": "30F-67890",
        "name": "Toyota Corolla",
        "description": "Compact sedan",
        "status": True,
    },
    {
        "id": "3",
        "number": "51G-24680",
        "name": "Ford F-150",
        "description": "Full-size pickup truck",
        "status": False,
    },
]


class Vehicle(ResultRecord):
    id: str
    name: str
    description: str | None = None
    status: bool = False


@pytest.fixture
def backend() -> InMemorySearchBackend:
    backend = InMemorySearchBackend()
    backend.load("vehicles", VEHICLES)
    return backend


@pytest.fixture
def service(backend: InMemorySearchBackend) -> SearchService:
    return SearchService(backend)


def names(records: list[Vehicle]) -> list[str]:
    return [r.name for r in records]


# --- Scenario Tests ---


async def test_multi_search_finds_jeep(
    service: SearchService, backend: InMemorySearchBackend
) -> None:
    """Test multi-field search over name and description."""
    request = SearchRequest(text_search="jeep", fields=("name", "description"), page=0, page_size=10)

    records = await service.multi_search("vehicles", request, Vehicle)

    assert len(records) == 1
    assert records[0].id == "1"
    assert records[0].name == "Jeep Wrangler"
    sent = backend.queries[-1]
    assert sent.offset == 0
    assert sent.limit == 10
    assert sent.source == ("id", "name", "description", "status")


async def test_fuzzy_search_tolerates_typo(service: SearchService) -> None:
    """Test fuzzy search matches a misspelled term."""
    request = SearchRequest(text_search="jeap", fields=("name", "description"))

    records = await service.fuzzy_search("vehicles", request, Vehicle)

    assert names(records) == ["Jeep Wrangler"]


async def test_multi_search_without_typo_tolerance(service: SearchService) -> None:
    """Test the misspelling finds nothing without fuzziness."""
    request = SearchRequest(text_search="jeap", fields=("name", "description"))
    assert await service.multi_search("vehicles", request, Vehicle) == []


async def test_wildcard_search(service: SearchService) -> None:
    """Test case-insensitive wildcard search."""
    request = SearchRequest(text_search="JEE*", fields=("name",))
    assert names(await service.wildcard_search("vehicles", request, Vehicle)) == ["Jeep Wrangler"]


async def test_regexp_search(service: SearchService) -> None:
    """Test case-insensitive regular expression search."""
    request = SearchRequest(text_search="toy.*", fields=("name", "description"))
    assert names(await service.regexp_search("vehicles", request, Vehicle)) == ["Toyota Corolla"]


async def test_match_phrase_search(service: SearchService) -> None:
    """Test phrase search keeps token order."""
    request = SearchRequest(text_search="compact sedan", fields=("description",))
    assert names(await service.match_phrase_search("vehicles", request, Vehicle)) == [
        "Toyota Corolla"
    ]

    reversed_request = SearchRequest(text_search="sedan compact", fields=("description",))
    assert await service.match_phrase_search("vehicles", reversed_request, Vehicle) == []


async def test_match_phrase_prefix_search(service: SearchService) -> None:
    """Test phrase-prefix completes the last word on the first field."""
    request = SearchRequest(text_search="full-size pick", fields=("description", "name"))
    assert names(await service.match_phrase_prefix_search("vehicles", request, Vehicle)) == [
        "Ford F-150"
    ]


async def test_match_phrase_prefix_ignores_later_fields(service: SearchService) -> None:
    """Test text only present in the second field is not found."""
    request = SearchRequest(text_search="toyo", fields=("description", "name"))
    assert await service.match_phrase_prefix_search("vehicles", request, Vehicle) == []


async def test_boosting_search(service: SearchService) -> None:
    """Test boosting ranks the heavier field's match first."""
    backend = InMemorySearchBackend()
    backend.load(
        "vehicles",
        [
            {"id": "a", "name": "Sedan deluxe", "description": "Jeep parts"},
            {"id": "b", "name": "Jeep Cherokee", "description": "Sedan alternative"},
        ],
    )
    request = SearchRequest(text_search="jeep", field_weights={"name": 5.0, "description": 1.0})

    records = await SearchService(backend).boosting_search("vehicles", request, Vehicle)

    assert [r.id for r in records] == ["b", "a"]


async def test_handle_search_filters(service: SearchService) -> None:
    """Test the caller filter selects documents."""
    request = SearchRequest(text_search="any", sort_field="name")
    caller_filter = BoolQuery(must=[TermQuery("status", True)])

    records = await service.handle_search("vehicles", request, caller_filter, Vehicle)

    assert names(records) == ["Jeep Wrangler", "Toyota Corolla"]


async def test_sort_and_pagination(service: SearchService) -> None:
    """Test sort direction and page offset are applied."""
    request = SearchRequest(
        text_search="any",
        sort_field="name",
        sort_direction=SortDirection.DESC,
        page_size=2,
    )
    first = await service.handle_search("vehicles", request, BoolQuery(), Vehicle)
    second = await service.handle_search(
        "vehicles", request.model_copy(update={"page": 1}), BoolQuery(), Vehicle
    )

    assert names(first) == ["Toyota Corolla", "Jeep Wrangler"]
    assert names(second) == ["Ford F-150"]


# --- Outcome Tests ---


async def test_search_outcome_zero_matches_is_ok(service: SearchService) -> None:
    """Test zero matches is reported as success."""
    request = SearchRequest(text_search="tractor", fields=("name",))

    outcome = await service.search(Strategy.MULTI_FIELD, "vehicles", request, Vehicle)

    assert outcome.status is OutcomeStatus.OK
    assert outcome.records == []


async def test_search_outcome_invalid_request(service: SearchService) -> None:
    """Test validation failures are reported, not raised."""
    request = SearchRequest(text_search="jeep", page_size=1001)

    outcome = await service.search("multi_field", "vehicles", request, Vehicle)

    assert outcome.status is OutcomeStatus.INVALID_REQUEST
    assert isinstance(outcome.error, PageSizeExceeded)
    assert await service.multi_search("vehicles", request, Vehicle) == []


async def test_search_outcome_no_query(service: SearchService) -> None:
    """Test wildcard without fields reports no query."""
    request = SearchRequest(text_search="je*")

    outcome = await service.search(Strategy.WILDCARD, "vehicles", request, Vehicle)

    assert outcome.status is OutcomeStatus.NO_QUERY
    assert outcome.error is None
    assert await service.wildcard_search("vehicles", request, Vehicle) == []


async def test_search_outcome_assembly_failed(service: SearchService) -> None:
    """Test assembly failures are reported as outcomes."""
    request = SearchRequest(text_search="jeep", field_weights={"name": 0.0})

    outcome = await service.search(Strategy.BOOSTING, "vehicles", request, Vehicle)

    assert outcome.status is OutcomeStatus.ASSEMBLY_FAILED
    assert isinstance(outcome.error, QueryAssemblyError)


async def test_backend_failure_yields_empty(
    service: SearchService, backend: InMemorySearchBackend
) -> None:
    """Test a simulated backend failure returns an empty list."""
    backend.fail_with = ConnectionError("cluster unreachable")
    request = SearchRequest(text_search="jeep", fields=("name",))

    assert await service.multi_search("vehicles", request, Vehicle) == []

    outcome = await service.search(Strategy.MULTI_FIELD, "vehicles", request, Vehicle)
    assert outcome.status is OutcomeStatus.EXECUTION_FAILED
    assert isinstance(outcome.error, ExecutionError)


async def test_unknown_index_yields_empty(service: SearchService) -> None:
    """Test a missing index degrades to an empty list."""
    request = SearchRequest(text_search="jeep", fields=("name",))
    assert await service.multi_search("trucks", request, Vehicle) == []


# --- Wiring Tests ---


def test_from_settings_uses_elasticsearch() -> None:
    """Test the service can be wired from configuration."""
    settings = Settings(_env_file=None, elasticsearch_hosts=["http://es:9200"])

    service = SearchService.from_settings(settings)

    assert isinstance(service.executor.backend, ElasticsearchBackend)
    assert service.executor.backend.hosts == ["http://es:9200"]


async def test_close_closes_backend(service: SearchService, backend: InMemorySearchBackend) -> None:
    """Test closing the service releases the backend."""
    await service.close()
    assert backend.count("vehicles") == 0
