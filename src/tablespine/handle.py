"""Database handle base class.

Manifesto:
    Callers never depend on a specific storage engine.  A provider hands
    back a :class:`DatabaseHandle`: one underlying connection, a fixed set
    of tables and explicit transaction boundaries.  The dump engine and
    host code only ever talk to this contract.

Features:
    - ``tables()`` fixed at construction
    - Explicit ``begin_transaction()`` / ``commit_transaction()`` /
      ``rollback_transaction()`` with no nesting
    - ``transaction()`` context manager
    - ``query(table)`` returning a table-scoped :class:`TableQuery`
    - Context-manager protocol for release on every exit path

Tags:
    tablespine, database, abstract-base, handle, transaction

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any, Generic, TypeVar

from tablespine.errors import DatabaseError, TransactionError
from tablespine.tables import TableDescriptor, TableLike, describe

R = TypeVar("R")


class TableQuery(ABC, Generic[R]):
    """Query object scoped to one table of one handle."""

    def __init__(self, table: TableDescriptor):
        self.table = table

    @abstractmethod
    def select(self) -> list[R]:
        """Return every record of the table, in storage order."""
        ...

    @abstractmethod
    def insert(self, record: R) -> None:
        """Insert one record."""
        ...

    def count(self) -> int:
        """Number of records in the table."""
        return len(self.select())


class DatabaseHandle(ABC):
    """
    Abstract base class for database handles.

    A handle is either in autocommit mode or inside exactly one open
    transaction.  Subclasses implement the ``_begin`` / ``_commit`` /
    ``_rollback`` hooks; the bookkeeping that enforces the one-transaction
    rule lives here.
    """

    def __init__(self, tables: Iterable[TableDescriptor] = ()):
        self._tables: tuple[TableDescriptor, ...] = tuple(tables)
        self._in_transaction = False
        self._closed = False

    def tables(self) -> tuple[TableDescriptor, ...]:
        """The record types this handle manages, in configuration order."""
        return self._tables

    @property
    def in_transaction(self) -> bool:
        return self._in_transaction

    @property
    def closed(self) -> bool:
        return self._closed

    # ── Transactions ─────────────────────────────────────────────

    def begin_transaction(self) -> None:
        """Open a transaction.  Nested transactions are not supported."""
        self._check_open()
        if self._in_transaction:
            raise TransactionError(f"{type(self).__name__} is already inside a transaction")
        self._begin()
        self._in_transaction = True

    def commit_transaction(self) -> None:
        """Commit the open transaction."""
        self._check_open()
        if not self._in_transaction:
            raise TransactionError(f"{type(self).__name__} has no open transaction to commit")
        try:
            self._commit()
        finally:
            self._in_transaction = False

    def rollback_transaction(self) -> None:
        """Discard the open transaction."""
        self._check_open()
        if not self._in_transaction:
            raise TransactionError(f"{type(self).__name__} has no open transaction to roll back")
        try:
            self._rollback()
        finally:
            self._in_transaction = False

    @contextmanager
    def transaction(self) -> Iterator[DatabaseHandle]:
        """Begin, commit on success, roll back on error."""
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            self.rollback_transaction()
            raise
        self.commit_transaction()

    @abstractmethod
    def _begin(self) -> None: ...

    @abstractmethod
    def _commit(self) -> None: ...

    @abstractmethod
    def _rollback(self) -> None: ...

    # ── Queries ──────────────────────────────────────────────────

    def query(self, table: TableLike) -> TableQuery[Any]:
        """Return a query object for ``table`` (a descriptor or a marked class)."""
        self._check_open()
        return self._query(describe(table))

    @abstractmethod
    def _query(self, table: TableDescriptor) -> TableQuery[Any]: ...

    # ── Lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        """Release the underlying resource.  Closing twice is a no-op."""
        if self._closed:
            return
        try:
            if self._in_transaction:
                self._rollback()
        finally:
            self._in_transaction = False
            self._closed = True
            self._release()

    def _release(self) -> None:
        """Hook for subclasses holding a connection."""

    def _check_open(self) -> None:
        if self._closed:
            raise DatabaseError(f"{type(self).__name__} is closed")

    def __enter__(self) -> DatabaseHandle:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        names = ", ".join(t.name for t in self._tables)
        return f"{type(self).__name__}(tables=[{names}])"


__all__ = [
    "DatabaseHandle",
    "TableQuery",
]
