"""
Cross-backend dump: copy every row of every source table into a destination.

Manifesto:
    Moving a host from one backend to another (map to sqlite, sqlite to
    mysql, ...) must be one call with visible progress.  Both handles are
    held inside a transaction for the whole copy, tables are processed in
    the source's order, rows in the source's row order, and the caller
    observes progress through a callback.

    There is no two-phase commit across the two stores.  The destination
    is committed first, then the source; if either commit fails the
    destination state is backend-defined and the dump reports
    :class:`TransactionCommitError`.

Architecture:
    ::

        DumpEngine.submit(source, destination, on_progress)
            │  check_compatible()         ── IncompatibleSchemasError, no I/O
            ▼
        executor (one worker) ── run():
            1. begin source, begin destination    ── TransactionStartError
            2. for table in source.tables():
                 rows = select()            → on_progress(table, len(rows))
                 insert row, remaining -= 1 → on_progress(table, remaining)
                                               when remaining % interval == 0
            3. commit destination, commit source  ── TransactionCommitError
            4. on_progress(None, 0)
            ▼
        Future[DumpReport]

Progress cadence:
    Events within a table never increase.  The remaining count reaches 0
    after the last row, so every non-empty table ends with ``(table, 0)``;
    an empty table emits only its initial ``(table, 0)``.  ``(None, 0)`` is
    always the last event of a successful dump.

Examples:
    >>> with DumpEngine() as engine:
    ...     future = engine.submit(source, destination, print)
    ...     report = future.result()
    >>> report.rows["myapp.models.User"]
    250

Tags:
    tablespine, dump, migration, transaction, progress, thread-pool

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
import time
import uuid
from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from tablespine.errors import (
    IncompatibleSchemasError,
    InvalidConfigError,
    TableSpineError,
    TransactionCommitError,
    TransactionStartError,
)
from tablespine.handle import DatabaseHandle
from tablespine.logging import LogContext, get_logger
from tablespine.settings import get_settings
from tablespine.tables import TableDescriptor

logger = get_logger(__name__)

ProgressCallback = Callable[[TableDescriptor | None, int], Any]


@dataclass(frozen=True)
class ProgressEvent:
    """One progress notification; ``table is None`` marks the end of the dump."""

    table: TableDescriptor | None
    remaining: int

    @property
    def done(self) -> bool:
        return self.table is None


@dataclass
class DumpReport:
    """Outcome of a successful dump."""

    rows: dict[str, int] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def total_rows(self) -> int:
        return sum(self.rows.values())


def check_compatible(source: DatabaseHandle, destination: DatabaseHandle) -> None:
    """Raise :class:`IncompatibleSchemasError` unless destination manages every source table."""
    destination_tables = set(destination.tables())
    missing = [t.type_id for t in source.tables() if t not in destination_tables]
    if missing:
        raise IncompatibleSchemasError(missing)


class DumpEngine:
    """
    Runs dumps as single units of work on an executor.

    Without an explicit ``executor`` the engine owns a one-worker
    ``ThreadPoolExecutor``; :meth:`shutdown` (or the context manager)
    releases it.  Handles passed to a dump must not be used by anyone else
    until its future completes.
    """

    def __init__(
        self,
        executor: Executor | None = None,
        *,
        progress_interval: int | None = None,
    ):
        settings = get_settings()
        if progress_interval is None:
            progress_interval = settings.progress_interval
        elif progress_interval < 1:
            raise InvalidConfigError(
                "progress_interval", progress_interval, "progress_interval must be at least 1"
            )
        self.progress_interval = progress_interval
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.dump_workers,
            thread_name_prefix="tablespine-dump",
        )

    # ── Submission ───────────────────────────────────────────────

    def submit(
        self,
        source: DatabaseHandle,
        destination: DatabaseHandle,
        on_progress: ProgressCallback,
    ) -> Future[DumpReport]:
        """Check compatibility now, then run the dump on the executor.

        Raises:
            IncompatibleSchemasError: synchronously, before any I/O
        """
        check_compatible(source, destination)
        return self._executor.submit(self.run, source, destination, on_progress)

    async def run_async(
        self,
        source: DatabaseHandle,
        destination: DatabaseHandle,
        on_progress: ProgressCallback,
    ) -> DumpReport:
        """Awaitable form of :meth:`submit`."""
        future = self.submit(source, destination, on_progress)
        return await asyncio.wrap_future(future)

    # ── The dump itself ──────────────────────────────────────────

    def run(
        self,
        source: DatabaseHandle,
        destination: DatabaseHandle,
        on_progress: ProgressCallback,
    ) -> DumpReport:
        """Perform the dump on the calling thread."""
        check_compatible(source, destination)
        dump_id = uuid.uuid4().hex[:8]
        started = time.monotonic()
        report = DumpReport()

        with LogContext(dump_id=dump_id):
            logger.info(
                "dump_started",
                source=type(source).__name__,
                destination=type(destination).__name__,
                tables=[t.type_id for t in source.tables()],
            )

            self._begin(source, destination)
            try:
                for table in source.tables():
                    report.rows[table.type_id] = self._dump_table(
                        source, destination, table, on_progress
                    )
            except BaseException as e:
                logger.error("dump_failed", error=str(e), error_type=type(e).__name__)
                _rollback_quietly(destination)
                _rollback_quietly(source)
                raise

            self._commit(source, destination)
            report.duration_seconds = time.monotonic() - started
            logger.info(
                "dump_completed",
                rows=report.total_rows,
                duration_seconds=round(report.duration_seconds, 3),
            )

        on_progress(None, 0)
        return report

    def _begin(self, source: DatabaseHandle, destination: DatabaseHandle) -> None:
        try:
            source.begin_transaction()
        except Exception as e:
            raise TransactionStartError(
                f"Could not begin a transaction on the source: {e}", cause=e
            ) from e

        try:
            destination.begin_transaction()
        except Exception as e:
            _rollback_quietly(source)
            raise TransactionStartError(
                f"Could not begin a transaction on the destination: {e}", cause=e
            ) from e

    def _commit(self, source: DatabaseHandle, destination: DatabaseHandle) -> None:
        try:
            destination.commit_transaction()
        except Exception as e:
            logger.error("dump_commit_failed", side="destination", error=str(e))
            _rollback_quietly(source)
            raise TransactionCommitError(
                f"Could not commit the destination; its state is backend-defined: {e}", cause=e
            ) from e

        try:
            source.commit_transaction()
        except Exception as e:
            logger.error("dump_commit_failed", side="source", error=str(e))
            raise TransactionCommitError(
                f"Destination committed but the source commit failed: {e}", cause=e
            ) from e

    def _dump_table(
        self,
        source: DatabaseHandle,
        destination: DatabaseHandle,
        table: TableDescriptor,
        on_progress: ProgressCallback,
    ) -> int:
        rows = source.query(table).select()
        total = remaining = len(rows)
        logger.debug("dump_table_started", table=table.type_id, rows=total)
        on_progress(table, total)

        target = destination.query(table)
        for row in rows:
            target.insert(row)
            remaining -= 1
            if remaining % self.progress_interval == 0:
                on_progress(table, remaining)

        return total

    # ── Lifecycle ────────────────────────────────────────────────

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the executor if this engine created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    def __enter__(self) -> DumpEngine:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown(wait=True)


def _rollback_quietly(handle: DatabaseHandle) -> None:
    """Roll back an open transaction; a failure here must not mask the original error."""
    if handle.closed or not handle.in_transaction:
        return
    try:
        handle.rollback_transaction()
    except TableSpineError as e:
        logger.warning("dump_rollback_failed", handle=type(handle).__name__, error=str(e))


# ── Module shortcuts ─────────────────────────────────────────────────────


def dump_database(
    source: DatabaseHandle,
    destination: DatabaseHandle,
    on_progress: ProgressCallback,
) -> DumpReport:
    """Run a dump on the calling thread."""
    with DumpEngine() as engine:
        return engine.run(source, destination, on_progress)


def dump_database_async(
    source: DatabaseHandle,
    destination: DatabaseHandle,
    on_progress: ProgressCallback,
    *,
    executor: Executor | None = None,
) -> Future[DumpReport]:
    """Submit a dump as one asynchronous unit of work.

    With no ``executor`` a dedicated single-worker pool is created and shut
    down once the dump finishes.
    """
    engine = DumpEngine(executor)
    future = engine.submit(source, destination, on_progress)
    if executor is None:
        future.add_done_callback(lambda _: engine.shutdown(wait=False))
    return future


__all__ = [
    "ProgressCallback",
    "ProgressEvent",
    "DumpReport",
    "DumpEngine",
    "check_compatible",
    "dump_database",
    "dump_database_async",
]
