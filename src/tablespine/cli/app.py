"""
Root Typer application for the tablespine CLI.

Commands::

    tablespine providers                         registered provider names
    tablespine tables CONFIG                     tables + row counts of a database
    tablespine dump SOURCE_CONFIG DEST_CONFIG    copy every row, with progress
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TextColumn

from tablespine import __version__
from tablespine.dump import DumpEngine, ProgressEvent
from tablespine.errors import TableSpineError
from tablespine.handle import DatabaseHandle
from tablespine.logging import configure_logging
from tablespine.providers import provider_registry
from tablespine.resolution import DEFAULT_SECTION, get_section_database
from tablespine.settings import get_settings
from tablespine.tables import TableDescriptor

from .utils import console, fail, load_host, print_json, print_table

app = typer.Typer(
    name="tablespine",
    help="tablespine: pluggable database handles and cross-backend dumps.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version / logging callback ───────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tablespine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override TABLESPINE_LOG_LEVEL."),
) -> None:
    """tablespine CLI: inspect providers, list tables, dump databases."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.log_format == "json",
    )


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def providers(
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """List registered database providers."""
    names = provider_registry.list_providers()
    if json_out:
        print_json(names)
        return
    print_table([{"provider": name} for name in names], title="Providers")


@app.command()
def tables(
    config: Path = typer.Argument(..., help="Host configuration (YAML)"),
    section: str = typer.Option(DEFAULT_SECTION, "--section", "-s", help="Configuration section"),
    package: str | None = typer.Option(None, "--package", "-p", help="Code root for autoscan"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Resolve a database and show its tables with row counts."""
    host = load_host(config, package)
    try:
        with get_section_database(host, section) as database:
            rows = [
                {"table": t.name, "type": t.type_id, "rows": database.query(t).count()}
                for t in database.tables()
            ]
    except TableSpineError as e:
        fail(e)

    if json_out:
        print_json(rows)
        return
    print_table(rows, title=f"{host.name} [{section}]")


@app.command()
def dump(
    source_config: Path = typer.Argument(..., help="Source host configuration (YAML)"),
    dest_config: Path = typer.Argument(..., help="Destination host configuration (YAML)"),
    source_section: str = typer.Option(DEFAULT_SECTION, "--source-section", help="Source section"),
    dest_section: str = typer.Option(DEFAULT_SECTION, "--dest-section", help="Destination section"),
    package: str | None = typer.Option(None, "--package", "-p", help="Code root for autoscan"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Copy every row of every source table into the destination."""
    source_host = load_host(source_config, package)
    dest_host = load_host(dest_config, package)

    try:
        source = get_section_database(source_host, source_section)
        try:
            destination = get_section_database(dest_host, dest_section)
        except TableSpineError:
            source.close()
            raise
    except TableSpineError as e:
        fail(e)

    try:
        report = _run_dump(source, destination, show_progress=not json_out)
    except TableSpineError as e:
        fail(e)
    finally:
        destination.close()
        source.close()

    if json_out:
        print_json(
            {
                "rows": report.rows,
                "total_rows": report.total_rows,
                "duration_seconds": round(report.duration_seconds, 3),
            }
        )
        return
    console.print(
        f"[green]Dumped {report.total_rows} rows from {len(report.rows)} tables "
        f"in {report.duration_seconds:.2f}s[/green]"
    )


def _run_dump(source: DatabaseHandle, destination: DatabaseHandle, *, show_progress: bool):
    progress = Progress(
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        disable=not show_progress,
    )
    totals: dict[TableDescriptor, tuple[TaskID, int]] = {}

    def on_progress(table: TableDescriptor | None, remaining: int) -> None:
        event = ProgressEvent(table, remaining)
        if event.done:
            return
        if event.table not in totals:
            task = progress.add_task(event.table.name, total=event.remaining)
            totals[event.table] = (task, event.remaining)
            return
        task, total = totals[event.table]
        progress.update(task, completed=total - event.remaining)

    with progress, DumpEngine() as engine:
        return engine.submit(source, destination, on_progress).result()
