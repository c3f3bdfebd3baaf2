# ABOUTME: The `booklog patch` command for preparing EPUBs for PocketBook readers.
# ABOUTME: Rewrites package metadata into a new file and optionally applies a sort title.

from pathlib import Path

import click
from rich.console import Console

from booklog.cli.options import settings_option
from booklog.core.pipeline import patch_epub_safely
from booklog.formats.epub import EpubReadError, read_epub_metadata
from booklog.formats.epub_patch import EpubPatchError, patch_epub
from booklog.metadata.text import article_to_end, cleanup_manual_title
from booklog.settings import SettingsStore

console = Console()


def _cleaned_title(
    path: Path, title: str | None, clean: bool, settings_path: Path | None
) -> str | None:
    """The sort title to apply, or None to leave titles alone."""
    if title is not None:
        return title.strip() or None
    if not clean or not SettingsStore(settings_path).snapshot().clean_titles:
        return None
    meta = read_epub_metadata(path)
    return article_to_end(cleanup_manual_title(meta.title))


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--title",
    default=None,
    help='Sort title with its article at the end, e.g. "letzte Fähre, Die".',
)
@click.option(
    "--clean/--no-clean",
    default=True,
    help="Derive a sort title from the book's own title.",
)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for the patched copy (default: next to the original).",
)
@settings_option
def patch(
    path: Path,
    title: str | None,
    clean: bool,
    output_dir: Path | None,
    settings_path: Path | None,
) -> None:
    """Patch an EPUB's metadata for PocketBook readers."""
    try:
        cleaned = _cleaned_title(path, title, clean, settings_path)
    except EpubReadError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    if output_dir is not None:
        result = patch_epub_safely(path, output_dir, cleaned_title=cleaned)
        if not result.success:
            console.print(f"[red]Error:[/red] Could not patch {path.name}: {result.error}")
            raise SystemExit(1)
        written, changed = result.path, result.patched
    else:
        try:
            written = patch_epub(path, cleaned_title=cleaned)
        except EpubPatchError as exc:
            console.print(f"[red]Error:[/red] Could not patch {path.name}: {exc}")
            raise SystemExit(1) from exc
        changed = written != path

    if not changed:
        console.print(f"[dim]{path.name} is already compatible; nothing written.[/dim]")
        return
    if cleaned:
        console.print(f"  [dim]Sort title:[/dim] {cleaned}")
    console.print(f"[green]Patched:[/green] {written}")
