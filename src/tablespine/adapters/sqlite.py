"""SQLite database adapter (embedded file store)."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

from tablespine.errors import DatabaseConnectionError

from .base import DatabaseAdapter
from .types import AdapterConfig, DatabaseType


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module. Suitable for:
    - Development and testing
    - Single-process applications
    - Portable dumps of another backend
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = AdapterConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout

    def connect(self) -> None:
        """Connect to the SQLite file, creating its directory if needed."""
        path = self._config.path or ":memory:"
        uri = path.startswith("file:")

        try:
            if not uri and path != ":memory:":
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )
            self._conn.execute("PRAGMA foreign_keys = ON")

            if self._config.readonly:
                self._conn.execute("PRAGMA query_only = ON")

        except (sqlite3.Error, OSError) as e:
            self._conn = None
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e


__all__ = [
    "SQLiteAdapter",
]
