# ABOUTME: Catalog commands: ls, find, rm, export, and import.
# ABOUTME: Lists, searches, removes, and transfers books in the library database.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from booklog.cli.options import db_option, settings_option
from booklog.db.catalog import LibraryCatalog, SortOrder
from booklog.db.connection import DEFAULT_DB_PATH, open_library
from booklog.db.mapping import Book
from booklog.db.transfer import CatalogImportError, export_catalog, import_catalog
from booklog.settings import SettingsStore

console = Console()


def _series_display(book: Book) -> str:
    if not book.series:
        return ""
    return f"{book.series} #{book.series_number}" if book.series_number else book.series


def _print_books(books: list[Book], label: str) -> None:
    table = Table()
    table.add_column("ID", style="dim", width=4)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Series")
    table.add_column("Owned", width=5)
    table.add_column("Read", width=4)

    for book in books:
        table.add_row(
            str(book.id),
            book.title,
            book.author or "[dim]unknown[/dim]",
            _series_display(book),
            "yes" if book.is_owned else "no",
            "yes" if book.is_read else "no",
        )

    console.print(table)
    console.print(f"\n[dim]{len(books)} {label}[/dim]")


@click.command("ls")
@db_option
@settings_option
@click.option("--owned/--not-owned", "is_owned", default=None, help="Filter by ownership.")
@click.option("--read/--unread", "is_read", default=None, help="Filter by read state.")
@click.option(
    "--sort",
    "sort_name",
    type=click.Choice([order.name for order in SortOrder], case_sensitive=False),
    default=None,
    help="Sort order (default: the book_sort_order setting).",
)
def ls(
    db_path: Path | None,
    settings_path: Path | None,
    is_owned: bool | None,
    is_read: bool | None,
    sort_name: str | None,
) -> None:
    """List books in the catalog."""
    order = SortOrder.parse(sort_name or SettingsStore(settings_path).snapshot().book_sort_order)
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        books = LibraryCatalog(conn).list_books(is_owned=is_owned, is_read=is_read, sort=order)
    finally:
        conn.close()

    if not books:
        console.print("[yellow]No books in the library.[/yellow]")
        return
    _print_books(books, "book(s)")


@click.command("find")
@click.argument("query")
@db_option
def find(query: str, db_path: Path | None) -> None:
    """Search the catalog by title, author, or description."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        books = LibraryCatalog(conn).search(query)
    finally:
        conn.close()

    if not books:
        console.print("[yellow]No results found.[/yellow]")
        return
    _print_books(books, "result(s)")


@click.command("rm")
@click.argument("book_ids", nargs=-1, type=int, required=True)
@db_option
def rm(book_ids: tuple[int, ...], db_path: Path | None) -> None:
    """Remove books from the catalog by ID."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        removed = LibraryCatalog(conn).delete_books(book_ids)
    finally:
        conn.close()

    if removed == 0:
        console.print("[red]Error:[/red] no matching books found")
        raise SystemExit(1)
    console.print(f"[green]Removed {removed} book(s).[/green]")
    missing = len(set(book_ids)) - removed
    if missing:
        console.print(f"[yellow]{missing} ID(s) not found.[/yellow]")


@click.command("export")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
@db_option
def export_books(path: Path, db_path: Path | None) -> None:
    """Export the catalog to a JSON file."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        count = export_catalog(LibraryCatalog(conn), path)
    except OSError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc
    finally:
        conn.close()
    console.print(f"[green]Exported {count} book(s)[/green] to {path}")


@click.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@db_option
@click.option("--replace", "replace_existing", is_flag=True, help="Replace the existing catalog.")
def import_books(path: Path, db_path: Path | None, replace_existing: bool) -> None:
    """Import books from a JSON export."""
    conn = open_library(db_path or DEFAULT_DB_PATH)
    try:
        count = import_catalog(LibraryCatalog(conn), path, replace_existing=replace_existing)
    except CatalogImportError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc
    finally:
        conn.close()
    console.print(f"[green]Imported {count} book(s)[/green] from {path}")
