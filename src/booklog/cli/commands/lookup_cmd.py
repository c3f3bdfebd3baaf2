# ABOUTME: The `booklog lookup` commands for searching external metadata providers.
# ABOUTME: Runs the resolver by ISBN or title/author/series and renders ranked candidates.

from collections.abc import Callable
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from booklog.cli.options import db_option, settings_option
from booklog.db.catalog import LibraryCatalog
from booklog.db.connection import DEFAULT_DB_PATH, open_library
from booklog.metadata.http import BooklogHttpClient
from booklog.metadata.resolver import (
    DEFAULT_TIMEOUTS,
    MetadataResolver,
    SearchReport,
    build_providers,
)
from booklog.settings import SettingsStore

console = Console()

add_option = click.option(
    "--add", "add_first", is_flag=True, help="Add the best match to the catalog."
)


def _resolve(
    settings_path: Path | None, search: Callable[[MetadataResolver], SearchReport]
) -> SearchReport:
    settings = SettingsStore(settings_path).snapshot()
    # Requests abandoned by the resolver finish by the last provider deadline.
    with BooklogHttpClient(timeout=max(DEFAULT_TIMEOUTS.values())) as http_client:
        resolver = MetadataResolver(build_providers(settings, http_client))
        return search(resolver)


def _series_display(series: str | None, number: str | None) -> str:
    if not series:
        return ""
    return f"{series} #{number}" if number else series


def _render(report: SearchReport) -> None:
    """Print the candidates, or why there are none. Exits 1 if every provider failed."""
    if report.all_failed:
        console.print("[red]Error:[/red] every metadata provider failed")
        for name, cause in report.failures.items():
            console.print(f"  [dim]{name}:[/dim] {cause}")
        raise SystemExit(1)

    if report.degraded:
        unreachable = ", ".join(f"{name} ({cause})" for name, cause in report.failures.items())
        console.print(f"[yellow]Search degraded:[/yellow] {unreachable}")

    if report.is_empty:
        console.print("[yellow]No results found.[/yellow]")
        return

    table = Table()
    table.add_column("#", style="dim", width=3)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Series")
    table.add_column("ISBN")
    table.add_column("Source", style="dim")

    for position, result in enumerate(report.results, start=1):
        table.add_row(
            str(position),
            result.title,
            result.author,
            _series_display(result.series, result.series_number),
            result.isbn or "",
            result.source.value,
        )

    console.print(table)
    console.print(f"\n[dim]{len(report.results)} result(s)[/dim]")


def _add_first(report: SearchReport, db_path: Path | None) -> None:
    if report.is_empty:
        return
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        best = report.results[0]
        book_id = LibraryCatalog(conn).add_search_result(best)
    finally:
        conn.close()
    console.print(f"[green]Added[/green] #{book_id}: {best.title}")


@click.group()
def lookup() -> None:
    """Look up book metadata from external providers."""


@lookup.command("isbn")
@click.argument("isbn")
@settings_option
@db_option
@add_option
def lookup_isbn(
    isbn: str, settings_path: Path | None, db_path: Path | None, add_first: bool
) -> None:
    """Look up a book by ISBN."""
    try:
        report = _resolve(settings_path, lambda resolver: resolver.search_by_isbn(isbn))
    except ValueError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    _render(report)
    if add_first:
        _add_first(report, db_path)


@lookup.command("search")
@click.option("--title", default=None, help="Title to search for.")
@click.option("--author", default=None, help="Author to search for.")
@click.option("--series", default=None, help="Series to search for.")
@settings_option
@db_option
@add_option
def lookup_search(
    title: str | None,
    author: str | None,
    series: str | None,
    settings_path: Path | None,
    db_path: Path | None,
    add_first: bool,
) -> None:
    """Search by title, author, and/or series."""
    report = _resolve(
        settings_path,
        lambda resolver: resolver.search_by_title_author(title=title, author=author, series=series),
    )
    _render(report)
    if add_first:
        _add_first(report, db_path)
