"""
Elasticsearch Adapter - Full-text search backend.
"""

from .client import (
    ElasticsearchBackend,
    compatibility_headers,
    parse_search_response,
    request_kwargs,
)

__all__ = [
    "ElasticsearchBackend",
    "compatibility_headers",
    "parse_search_response",
    "request_kwargs",
]
