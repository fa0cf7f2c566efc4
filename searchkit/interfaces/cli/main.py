"""
CLI Main - Typer-based command-line interface.

Usage:
    searchkit search "jeep" -f name -f description
    searchkit search "jeap" --strategy fuzzy -f name --dry-run
    searchkit search "wrangler" --strategy boosting -w name=3 -w description=1
    searchkit search "suv" --strategy handle --term status=true
    searchkit strategies
"""

from __future__ import annotations

import asyncio
import json
import logging

import typer
from pydantic import ConfigDict
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from searchkit.config import SearchKitError, get_settings
from searchkit.domains.search import (
    BoolQuery,
    QueryBuilder,
    ResultRecord,
    SearchRequest,
    SortDirection,
    Strategy,
    StructuredQuery,
    TermQuery,
)

app = typer.Typer(
    name="searchkit",
    help="SearchKit - Declarative full-text search",
    add_completion=False,
)
console = Console()

STRATEGY_HELP = {
    Strategy.HANDLE: "Caller boolean filter (--term) in filter context",
    Strategy.MULTI_FIELD: "Best-fields match over the given fields (all fields if none)",
    Strategy.MATCH_PHRASE: "Phrase match over the given fields, honouring --slop",
    Strategy.MATCH_PHRASE_PREFIX: "Phrase with prefix on the last word, first field only",
    Strategy.REGEXP: "Case-insensitive regular expression per field",
    Strategy.FUZZY: "Most-fields match with AUTO edit-distance fuzziness",
    Strategy.WILDCARD: "Case-insensitive * / ? pattern per field",
    Strategy.BOOSTING: "Most-fields match weighted by --weight name=value",
}


class Document(ResultRecord):
    """Untyped hit: keeps every stored field."""

    model_config = ConfigDict(extra="allow")


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _parse_pairs(values: list[str] | None, option: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for raw in values or []:
        name, sep, value = raw.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"expected name=value, got {raw!r}", param_hint=option)
        pairs[name.strip()] = value.strip()
    return pairs


def _parse_weights(values: list[str] | None) -> dict[str, float]:
    weights: dict[str, float] = {}
    for name, value in _parse_pairs(values, "--weight").items():
        try:
            weights[name] = float(value)
        except ValueError:
            raise typer.BadParameter(f"weight for {name!r} is not a number", param_hint="--weight")
    return weights


def _parse_term_value(value: str) -> bool | int | float | str:
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def _term_filter(values: list[str] | None) -> BoolQuery | None:
    terms = _parse_pairs(values, "--term")
    if not terms:
        return None
    return BoolQuery(must=[TermQuery(name, _parse_term_value(v)) for name, v in terms.items()])


@app.command()
def search(
    text: str = typer.Argument(..., help="Search text"),
    index: str | None = typer.Option(None, "--index", "-i", help="Index name"),
    strategy: Strategy = typer.Option(Strategy.MULTI_FIELD, "--strategy", "-s", help="Query strategy"),
    field: list[str] | None = typer.Option(None, "--field", "-f", help="Field to search (repeatable)"),
    weight: list[str] | None = typer.Option(None, "--weight", "-w", help="Field weight name=value"),
    term: list[str] | None = typer.Option(None, "--term", "-t", help="Filter term name=value"),
    page: int = typer.Option(0, "--page", "-p", help="Page number"),
    size: int | None = typer.Option(None, "--size", "-n", help="Page size"),
    sort: str | None = typer.Option(None, "--sort", help="Sort field"),
    order: SortDirection | None = typer.Option(None, "--order", help="Sort direction"),
    slop: int = typer.Option(10, "--slop", help="Phrase slop"),
    max_expansions: int = typer.Option(10, "--max-expansions", help="Prefix expansions"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print the query instead of running it"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Search an index with one of the query strategies."""
    _configure_logging(verbose)
    settings = get_settings()

    request = SearchRequest(
        text_search=text,
        fields=tuple(field or ()),
        field_weights=_parse_weights(weight),
        page=page,
        page_size=settings.search_default_page_size if size is None else size,
        sort_field=sort,
        sort_direction=order,
        slop=slop,
        max_expansions=max_expansions,
    )
    target = index or settings.search_default_index

    try:
        query = QueryBuilder().build(
            strategy,
            target,
            request,
            bool_filter=_term_filter(term),
            result_type=Document,
        )
    except SearchKitError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    if query is None:
        console.print(f"[yellow]No query:[/yellow] {strategy.value} needs at least one --field")
        raise typer.Exit(1)

    if dry_run:
        console.print_json(json.dumps({"index": query.index, **query.to_body()}))
        return

    asyncio.run(_search_async(query))


async def _search_async(query: StructuredQuery) -> None:
    """Run the query against the configured cluster."""
    from searchkit.domains.search import SearchExecutor
    from searchkit.adapters.elasticsearch import ElasticsearchBackend

    settings = get_settings()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Searching...", total=None)

        async with ElasticsearchBackend.from_settings(settings) as backend:
            outcome = await SearchExecutor(backend).run(query, Document)

    if not outcome.ok:
        message = outcome.error.message if outcome.error else outcome.status.value
        console.print(f"[red]Search failed:[/red] {message}")
        raise typer.Exit(1)

    if not outcome.records:
        console.print("[yellow]No results[/yellow]")
        return

    rows = [record.model_dump() for record in outcome.records]
    columns = list(dict.fromkeys(key for row in rows for key in row))

    table = Table(title=f"{query.index} ({query.strategy.value if query.strategy else 'query'})")
    for column in columns:
        table.add_column(column, overflow="fold")
    for row in rows:
        table.add_row(*(str(row.get(column, "")) for column in columns))

    console.print(table)
    console.print(f"[dim]from={query.offset} size={query.limit}[/dim]")


@app.command()
def strategies() -> None:
    """List the available query strategies."""
    table = Table(title="Strategies")
    table.add_column("Strategy", style="cyan")
    table.add_column("Behaviour")
    for strategy, description in STRATEGY_HELP.items():
        table.add_row(strategy.value, description)
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from searchkit import __version__

    console.print(f"SearchKit v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
