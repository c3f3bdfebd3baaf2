# ABOUTME: CLI package for booklog, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from booklog.cli.commands import (
    catalog_cmd,
    inspect_cmd,
    lookup_cmd,
    patch_cmd,
    settings_cmd,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(package_name="booklog")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """booklog - personal book catalog with metadata lookup and EPUB patching."""
    _configure_logging(verbose)


cli.add_command(lookup_cmd.lookup)
cli.add_command(patch_cmd.patch)
cli.add_command(inspect_cmd.inspect)
cli.add_command(catalog_cmd.ls)
cli.add_command(catalog_cmd.find)
cli.add_command(catalog_cmd.rm)
cli.add_command(catalog_cmd.export_books)
cli.add_command(catalog_cmd.import_books)
cli.add_command(settings_cmd.settings)
