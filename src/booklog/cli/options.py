# ABOUTME: Shared Click options for booklog CLI commands.
# ABOUTME: Provides reusable decorators for the --db and --settings flags.

from pathlib import Path

import click

from booklog.db.connection import DEFAULT_DB_PATH
from booklog.settings import DEFAULT_SETTINGS_PATH

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to library database (default: {DEFAULT_DB_PATH})",
)

settings_option = click.option(
    "--settings",
    "settings_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Path to settings file (default: {DEFAULT_SETTINGS_PATH})",
)
