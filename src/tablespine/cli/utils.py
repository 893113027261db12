"""
CLI utility helpers: consoles, host loading and error output.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from tablespine.config import HostContext
from tablespine.errors import TableSpineError

console = Console()
err_console = Console(stderr=True)


def load_host(path: Path, package: str | None) -> HostContext:
    """Load a host configuration file, exiting with code 1 on failure."""
    try:
        return HostContext.from_yaml(path, package=package)
    except TableSpineError as e:
        fail(e)


def fail(error: TableSpineError) -> NoReturn:
    """Print a typed error and exit with code 1."""
    err_console.print(f"[bold red]Error[/bold red] ({type(error).__name__}): {error.message}")
    raise typer.Exit(code=1)


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_table(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of flat dicts as a rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False)
    for column in rows[0]:
        table.add_column(column.replace("_", " ").title())
    for row in rows:
        table.add_row(*(str(v) for v in row.values()))
    console.print(table)
