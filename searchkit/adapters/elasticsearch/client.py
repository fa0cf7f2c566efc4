"""
Elasticsearch Backend - Executes structured queries on Elasticsearch.

Features:
- Lazy AsyncElasticsearch client creation (or an injected client)
- Basic auth or API key
- Optional REST API compatibility headers for older clusters
- Retry with exponential backoff on transient transport errors
- Raw reply conversion to SearchResponse
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from elasticsearch import AsyncElasticsearch, ConnectionTimeout
from elasticsearch import ConnectionError as TransportConnectionError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from searchkit.config.errors import BackendUnavailableError
from searchkit.domains.search.models import SearchHit, SearchResponse, StructuredQuery

if TYPE_CHECKING:
    from searchkit.config.settings import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "ElasticsearchBackend",
    "compatibility_headers",
    "parse_search_response",
    "request_kwargs",
]

# Retried; API errors (bad query, missing index) are not.
TRANSIENT_ERRORS = (TransportConnectionError, ConnectionTimeout)


def compatibility_headers(version: int) -> dict[str, str]:
    """Headers asking the server to answer in the REST API of ``version``."""
    media_type = f"application/vnd.elasticsearch+json; compatible-with={version}"
    return {"Accept": media_type, "Content-Type": media_type}


def parse_search_response(raw: Mapping[str, Any]) -> SearchResponse:
    """Convert a raw search reply into a SearchResponse."""
    hits_section = raw.get("hits") or {}

    total = hits_section.get("total", 0)
    if isinstance(total, Mapping):
        total = total.get("value", 0)

    hits = [
        SearchHit(
            index=hit.get("_index", ""),
            id=hit.get("_id"),
            score=hit.get("_score") or 0.0,
            source=hit.get("_source") or {},
        )
        for hit in hits_section.get("hits", [])
    ]
    return SearchResponse(hits=hits, total=total or 0, took_ms=raw.get("took", 0))


# Body keys the client takes under a different keyword name.
_BODY_KEYWORDS = {"from": "from_", "_source": "source"}


def request_kwargs(query: StructuredQuery) -> dict[str, Any]:
    """Client keyword arguments for a query, rendered from ``to_body()``."""
    kwargs: dict[str, Any] = {"index": query.index}
    for key, value in query.to_body().items():
        kwargs[_BODY_KEYWORDS.get(key, key)] = value
    return kwargs


class ElasticsearchBackend:
    """
    Elasticsearch search backend.

    Example:
        >>> backend = ElasticsearchBackend(["http://localhost:9200"], "elastic", "changeme")
        >>> response = await backend.search(query)
        >>> await backend.close()
    """

    def __init__(
        self,
        hosts: list[str] | None = None,
        username: str | None = None,
        password: str | None = None,
        api_key: str | None = None,
        compatibility_version: int | None = None,
        verify_certs: bool = True,
        request_timeout: float = 30.0,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        client: AsyncElasticsearch | None = None,
    ) -> None:
        """
        Initialize Elasticsearch backend.

        Args:
            hosts: Node URLs
            username: Basic auth user
            password: Basic auth password
            api_key: API key (takes precedence over basic auth)
            compatibility_version: Send compatible-with headers for this major version
            verify_certs: Verify TLS certificates
            request_timeout: Per-request timeout in seconds
            max_retries: Attempts per search on transient errors (at least 1)
            retry_backoff: Exponential backoff multiplier in seconds
            client: Pre-built client; connection options are ignored when given
        """
        self.hosts = hosts or ["http://localhost:9200"]
        self.username = username
        self.password = password
        self.api_key = api_key
        self.compatibility_version = compatibility_version
        self.verify_certs = verify_certs
        self.request_timeout = request_timeout
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> ElasticsearchBackend:
        """Create a backend from application settings."""
        return cls(
            hosts=settings.elasticsearch_hosts,
            username=settings.elasticsearch_username,
            password=settings.elasticsearch_password,
            api_key=settings.elasticsearch_api_key,
            compatibility_version=settings.elasticsearch_compatibility_version,
            verify_certs=settings.elasticsearch_verify_certs,
            request_timeout=settings.elasticsearch_request_timeout,
            max_retries=settings.elasticsearch_max_retries,
            retry_backoff=settings.elasticsearch_retry_backoff,
        )

    def client_options(self) -> dict[str, Any]:
        """Keyword arguments used to create the AsyncElasticsearch client."""
        options: dict[str, Any] = {
            "hosts": self.hosts,
            "verify_certs": self.verify_certs,
            "request_timeout": self.request_timeout,
        }
        if self.api_key:
            options["api_key"] = self.api_key
        elif self.username and self.password:
            options["basic_auth"] = (self.username, self.password)
        if self.compatibility_version is not None:
            options["headers"] = compatibility_headers(self.compatibility_version)
        return options

    def _get_client(self) -> AsyncElasticsearch:
        """Get or create the Elasticsearch client."""
        if self._client is None:
            try:
                self._client = AsyncElasticsearch(**self.client_options())
            except Exception as e:
                raise BackendUnavailableError(
                    f"Cannot create Elasticsearch client: {e}",
                    {"hosts": self.hosts},
                ) from e
            logger.info("Elasticsearch client created for %s", self.hosts)
        return self._client

    async def search(self, query: StructuredQuery) -> SearchResponse:
        """
        Execute a structured query.

        Args:
            query: Query built by the query builder

        Returns:
            Parsed search response

        Raises:
            BackendUnavailableError: client could not be created
            elasticsearch.ConnectionError: still failing after max_retries attempts
            elasticsearch.ApiError / TransportError: request failed
        """
        client = self._get_client()

        kwargs = request_kwargs(query)

        raw: Any = None
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_backoff, max=30),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                raw = await client.search(**kwargs)

        body = raw.body if hasattr(raw, "body") else raw
        return parse_search_response(body)

    async def close(self) -> None:
        """Close client connections."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def __aenter__(self) -> ElasticsearchBackend:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
