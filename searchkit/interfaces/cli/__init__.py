"""
CLI Interface - Command-line tools for SearchKit.

Provides commands for:
- Building and running searches with any strategy
- Inspecting the generated query body
"""

from .main import app, main

__all__ = ["app", "main"]
