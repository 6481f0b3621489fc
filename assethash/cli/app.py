"""Main Typer application. Imports and registers all CLI commands.

Entry point: ``assethash`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.logging import RichHandler

from assethash.cli.commands.run_cmd import run_cmd
from assethash.cli.commands.scan_cmd import scan_cmd
from assethash.config import settings

app = typer.Typer(
    name="assethash",
    help="assethash: content-derived cache-busting identifiers for build output.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Log every decision (DEBUG level)."
    ),
) -> None:
    """Configure logging before any command runs."""
    level = logging.DEBUG if verbose else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(show_path=False, rich_tracebacks=True)],
        force=True,
    )


# Register subcommands
app.command(name="run", help="Hash assets and rewrite references in place.")(run_cmd)
app.command(name="scan", help="List the references detected in one file.")(scan_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
