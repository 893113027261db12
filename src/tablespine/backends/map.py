"""In-memory map backend.

Records live in a plain dict of lists keyed by table descriptor.  The
store is schema-less: any marked record type can be queried, whether or
not it is part of the handle's table set.  A transaction snapshots the
store on begin and restores the snapshot on rollback.  Records are copied
on the way in and on the way out, so callers never hold stored objects.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterable
from typing import Any

from tablespine.handle import DatabaseHandle, TableQuery
from tablespine.tables import TableDescriptor


class MapTableQuery(TableQuery[Any]):
    def __init__(self, table: TableDescriptor, database: MapDatabase):
        super().__init__(table)
        self._database = database

    def select(self) -> list[Any]:
        with self._database._lock:
            return [copy.copy(record) for record in self._database._rows(self.table)]

    def insert(self, record: Any) -> None:
        self.table.to_row(record)  # type check only
        with self._database._lock:
            self._database._rows(self.table).append(copy.copy(record))

    def count(self) -> int:
        with self._database._lock:
            return len(self._database._rows(self.table))


class MapDatabase(DatabaseHandle):
    """Handle over a process-local in-memory store."""

    def __init__(self, tables: Iterable[TableDescriptor] = ()):
        super().__init__(tables)
        self._lock = threading.RLock()
        self._store: dict[TableDescriptor, list[Any]] = {t: [] for t in self._tables}
        self._snapshot: dict[TableDescriptor, list[Any]] | None = None

    def _rows(self, table: TableDescriptor) -> list[Any]:
        return self._store.setdefault(table, [])

    def _begin(self) -> None:
        with self._lock:
            self._snapshot = {t: list(rows) for t, rows in self._store.items()}

    def _commit(self) -> None:
        self._snapshot = None

    def _rollback(self) -> None:
        with self._lock:
            if self._snapshot is not None:
                self._store = self._snapshot
            self._snapshot = None

    def _query(self, table: TableDescriptor) -> MapTableQuery:
        return MapTableQuery(table, self)

    def _release(self) -> None:
        with self._lock:
            self._store.clear()


__all__ = [
    "MapDatabase",
    "MapTableQuery",
]
