"""``assethash run DIRECTORY``: hash assets and rewrite references in place.

Flags that are not given fall back to ``ASSETHASH_*`` settings. Exits with
code 1 on invalid options or, under ``--on-missing error``, on the first
run with an unresolvable reference (no file is modified in that case).
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from assethash.config import settings
from assethash.core.engine import MissingReferenceError, asset_hash_sync
from assethash.core.path_resolver import canonical_path
from assethash.models.options import ConfigurationError, MissingPolicy, load_options
from assethash.models.reports import HashReport

console = Console()


def _relative(path: Path, directory: Path) -> str:
    try:
        return str(path.relative_to(canonical_path(directory)))
    except ValueError:
        return str(path)


def run_cmd(
    directory: Path = typer.Argument(
        ...,
        help="The build output directory to process.",
    ),
    include: Optional[list[str]] = typer.Option(
        None,
        "--include",
        "-i",
        help="Glob of documents to rewrite (repeatable). Default: **/*.html",
    ),
    exclude: Optional[list[str]] = typer.Option(
        None,
        "--exclude",
        "-e",
        help="Glob of documents to leave alone (repeatable).",
    ),
    include_assets: Optional[list[str]] = typer.Option(
        None,
        "--assets",
        "-a",
        help="Glob of assets to hash (repeatable). Default: **/*.{css,js}",
    ),
    exclude_assets: Optional[list[str]] = typer.Option(
        None,
        "--exclude-assets",
        help="Glob of assets never to hash (repeatable).",
    ),
    path_prefix: Optional[str] = typer.Option(
        None,
        "--prefix",
        help="URL prefix the directory is served from, e.g. /blog/.",
    ),
    algorithm: Optional[str] = typer.Option(
        None,
        "--algorithm",
        help="SHA-1, SHA-256, SHA-384 or SHA-512.",
    ),
    max_length: Optional[int] = typer.Option(
        None,
        "--max-length",
        "-n",
        help="Truncate identifiers (shorter, but less collision-resistant).",
    ),
    param: Optional[str] = typer.Option(
        None,
        "--param",
        "-p",
        help="Query parameter name to embed.",
    ),
    on_missing: Optional[MissingPolicy] = typer.Option(
        None,
        "--on-missing",
        help="What to do with references to files that are not indexed.",
    ),
    extensions: Optional[list[str]] = typer.Option(
        None,
        "--extension",
        "-x",
        help="Only treat references with this extension as assets (repeatable).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Compute identifiers without writing any file.",
    ),
) -> None:
    """Embed content checksums into asset references under DIRECTORY."""
    values = {
        "directory": directory,
        "path_prefix": path_prefix or settings.path_prefix,
        "algorithm": algorithm or settings.algorithm,
        "max_length": max_length if max_length is not None else settings.max_length,
        "param": param or settings.param,
        "on_missing": on_missing or settings.on_missing,
        "extensions": extensions or None,
    }
    if include:
        values["include"] = include
    if exclude:
        values["exclude"] = exclude
    if include_assets:
        values["include_assets"] = include_assets
    if exclude_assets:
        values["exclude_assets"] = exclude_assets

    try:
        options = load_options(**values)
        report = asset_hash_sync(options, dry_run=dry_run)
    except ConfigurationError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {exc}")
        raise typer.Exit(code=1)
    except MissingReferenceError as exc:
        console.print("[bold red]Aborted: unresolved references.[/bold red]")
        for reference in exc.missing:
            console.print(f"  [red]- {reference.describe()}[/red]")
        console.print("[dim]No files were modified.[/dim]")
        raise typer.Exit(code=1)

    _print_report(report)


def _print_report(report: HashReport) -> None:
    table = Table(title="Document identifiers")
    table.add_column("Document", style="cyan")
    table.add_column("Identifier", style="green")
    table.add_column("Written", justify="center")

    written = set(report.written)
    for path in sorted(report.checksums):
        mark = "[green]Yes[/green]" if path in written else "[dim]No[/dim]"
        table.add_row(_relative(path, report.directory), report.checksums[path], mark)

    console.print()
    console.print(table)
    console.print(
        Panel(
            "\n".join([
                "[bold green]Hashing complete![/bold green]"
                if not report.dry_run
                else "[bold yellow]Dry run complete, nothing written.[/bold yellow]",
                "",
                f"[bold]Directory:[/bold]  {report.directory}",
                f"[bold]Documents:[/bold]  {report.document_count}",
                f"[bold]Cycles:[/bold]     {report.cycle_count}",
                f"[bold]Written:[/bold]    {len(report.written)}",
                f"[bold]Unresolved:[/bold] {len(report.missing)}",
            ]),
            title="[bold]assethash[/bold]",
            border_style="green" if not report.dry_run else "yellow",
            padding=(1, 2),
        )
    )
