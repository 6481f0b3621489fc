"""``assethash scan FILE``: list the references detected in one file."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from assethash.core.scanner import build_asset_pattern, detect_assets

console = Console()


def scan_cmd(
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="The document to scan.",
    ),
    extensions: Optional[list[str]] = typer.Option(
        None,
        "--extension",
        "-x",
        help="Only report references with this extension (repeatable).",
    ),
) -> None:
    """Show every asset reference the scanner finds in FILE."""
    bad = [ext for ext in extensions or [] if not re.fullmatch(r"\w+", ext, re.ASCII)]
    if bad:
        console.print(f"[bold red]Cannot match extension:[/bold red] {', '.join(bad)}")
        raise typer.Exit(code=1)

    try:
        content = file.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        console.print(f"[bold red]Cannot read {file} as UTF-8:[/bold red] {exc}")
        raise typer.Exit(code=1)

    matches = detect_assets(content, build_asset_pattern(extensions or None))
    if not matches:
        console.print("[dim]No references found.[/dim]")
        return

    table = Table(title=f"References in {file}")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Reference", style="cyan")
    table.add_column("Query", justify="center")
    for match in matches:
        query = "[green]Yes[/green]" if content[match.end : match.end + 1] == "?" else ""
        table.add_row(str(match.start), str(match.end), match.text, query)
    console.print(table)
