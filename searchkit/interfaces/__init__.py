"""
Interfaces - Entry points into SearchKit.

- cli: Typer command-line interface
"""
