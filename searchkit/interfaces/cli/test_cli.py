"""
Tests for the command-line interface.
"""

from __future__ import annotations

import importlib
import json

import pytest
from typer.testing import CliRunner

from searchkit import __version__

from .main import app

# The package re-exports the main() function under the module's name.
cli_main = importlib.import_module("searchkit.interfaces.cli.main")
runner = CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the test runner's log handlers in place."""
    monkeypatch.setattr(cli_main, "_configure_logging", lambda verbose: None)


def dry_run(*args: str) -> dict:
    result = runner.invoke(app, ["search", *args, "--index", "vehicles", "--dry-run"])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


def test_dry_run_multi_field() -> None:
    """Test the default strategy over two fields."""
    body = dry_run("jeep", "-f", "name", "-f", "description", "--size", "10", "--page", "2")
    assert body == {
        "index": "vehicles",
        "query": {
            "multi_match": {
                "query": "jeep",
                "type": "best_fields",
                "fields": ["name", "description"],
                "operator": "or",
            }
        },
        "from": 20,
        "size": 10,
    }


def test_dry_run_fuzzy_with_sort() -> None:
    """Test strategy and sort options."""
    body = dry_run("jeap", "-s", "fuzzy", "-f", "name", "--sort", "name", "--order", "desc")
    assert body["query"]["multi_match"]["fuzziness"] == "AUTO"
    assert body["sort"] == [{"name": {"order": "desc"}}]


def test_dry_run_boosting_weights() -> None:
    """Test --weight pairs become boosted fields."""
    body = dry_run("wrangler", "-s", "boosting", "-w", "name=3", "-w", "description=0.5")
    assert body["query"]["multi_match"]["fields"] == ["name^3", "description^0.5"]


def test_dry_run_handle_with_term_filter() -> None:
    """Test --term builds a typed boolean filter."""
    body = dry_run("suv", "-s", "handle", "-t", "status=true")
    assert body["query"] == {
        "bool": {"filter": [{"bool": {"must": [{"term": {"status": True}}]}}]}
    }


def test_blank_text_fails() -> None:
    """Test validation errors exit with status 1."""
    result = runner.invoke(app, ["search", "   ", "-f", "name", "--dry-run"])
    assert result.exit_code == 1
    assert "must not be empty" in result.output


def test_page_size_ceiling() -> None:
    """Test the page size limit is reported."""
    result = runner.invoke(app, ["search", "jeep", "--size", "1001", "--dry-run"])
    assert result.exit_code == 1
    assert "1000" in result.output


def test_wildcard_without_fields_produces_no_query() -> None:
    """Test strategies that need fields explain the missing option."""
    result = runner.invoke(app, ["search", "je*", "-s", "wildcard", "--dry-run"])
    assert result.exit_code == 1
    assert "--field" in result.output


def test_bad_weight_is_usage_error() -> None:
    """Test malformed weights are rejected as bad parameters."""
    result = runner.invoke(app, ["search", "jeep", "-s", "boosting", "-w", "name=heavy", "--dry-run"])
    assert result.exit_code == 2


def test_strategies_lists_every_strategy() -> None:
    """Test the strategies table."""
    result = runner.invoke(app, ["strategies"])
    assert result.exit_code == 0
    assert "fuzzy" in result.output
    assert "wildcard" in result.output


def test_version() -> None:
    """Test version output."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_explicit_zero_size_is_kept() -> None:
    """Test --size 0 is not replaced by the configured default."""
    body = dry_run("jeep", "-f", "name", "--size", "0")
    assert body["size"] == 0
