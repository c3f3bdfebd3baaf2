# ABOUTME: Shared fixtures for CLI end-to-end tests.
# ABOUTME: Widens the command consoles so table cells are not wrapped in captured output.

import pytest
from rich.console import Console

_COMMAND_MODULES = (
    "booklog.cli.commands.catalog_cmd",
    "booklog.cli.commands.inspect_cmd",
    "booklog.cli.commands.lookup_cmd",
    "booklog.cli.commands.patch_cmd",
    "booklog.cli.commands.settings_cmd",
)


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    for module in _COMMAND_MODULES:
        monkeypatch.setattr(f"{module}.console", Console(width=200))
