"""
In-Memory Adapter - Local search backend for tests and demos.
"""

from .backend import InMemorySearchBackend, auto_fuzziness, levenshtein

__all__ = ["InMemorySearchBackend", "auto_fuzziness", "levenshtein"]
