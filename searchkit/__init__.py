"""
SearchKit - Declarative full-text query construction for Elasticsearch.

Example:
    >>> from searchkit.domains.search import SearchRequest, SearchService
    >>> service = SearchService(backend)
    >>> request = SearchRequest(text_search="jeep", fields=("name", "description"))
    >>> vehicles = await service.multi_search("vehicles", request, Vehicle)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
