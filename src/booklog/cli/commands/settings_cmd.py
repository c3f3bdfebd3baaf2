# ABOUTME: The `booklog settings` commands for viewing and changing preferences.
# ABOUTME: Reads and writes the JSON settings store.

import dataclasses
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from booklog.cli.options import settings_option
from booklog.settings import SettingsStore, parse_value

console = Console()

_SECRET_SUFFIX = "_api_key"


def _display(key: str, value: object) -> str:
    if key.endswith(_SECRET_SUFFIX):
        return "[dim]set[/dim]" if value else "[dim]not set[/dim]"
    return str(value)


@click.group()
def settings() -> None:
    """Show or change settings."""


@settings.command("show")
@settings_option
def show(settings_path: Path | None) -> None:
    """Show the current settings."""
    store = SettingsStore(settings_path)
    current = store.snapshot()

    table = Table(title=str(store.path), show_header=False, pad_edge=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    for key, value in dataclasses.asdict(current).items():
        table.add_row(key, _display(key, value))
    console.print(table)


@settings.command("set")
@click.argument("key")
@click.argument("value")
@settings_option
def set_value(key: str, value: str, settings_path: Path | None) -> None:
    """Change one setting."""
    store = SettingsStore(settings_path)
    try:
        parsed = parse_value(key, value)
        store.update(**{key: parsed})
    except KeyError as exc:
        console.print(f"[red]Error:[/red] Unknown setting: {key}")
        raise SystemExit(1) from exc
    except (TypeError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc
    console.print(f"[green]{key}[/green] = {_display(key, parsed)}")


@settings.command("reset")
@settings_option
@click.confirmation_option(prompt="Restore every setting to its default?")
def reset(settings_path: Path | None) -> None:
    """Restore default settings."""
    SettingsStore(settings_path).reset()
    console.print("[green]Settings restored to defaults.[/green]")
