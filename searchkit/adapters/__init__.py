"""
Adapters - Search backend integrations.

All backend client calls are wrapped here to isolate the search domain from
third-party changes.
"""

from .elasticsearch import ElasticsearchBackend
from .memory import InMemorySearchBackend

__all__ = [
    "ElasticsearchBackend",
    "InMemorySearchBackend",
]
