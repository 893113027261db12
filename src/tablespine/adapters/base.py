"""Database adapter base class.

Manifesto:
    An adapter owns the driver: it knows how to open and close exactly
    one DB-API connection for its database type, and nothing else.  SQL
    generation lives in :mod:`tablespine.dialect`; transaction bookkeeping
    lives in :class:`~tablespine.backends.relational.RelationalDatabase`.

Features:
    - Abstract ``connect()`` / ``disconnect()``
    - Lazy ``get_connection()``
    - ``dialect`` matching the adapter's database type
    - Context-manager protocol for connection lifecycle

Tags:
    tablespine, database, abstract-base, adapter-pattern

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from tablespine.dialect import Dialect, get_dialect

from .types import AdapterConfig, DatabaseType


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Subclasses import their driver inside :meth:`connect`, so a missing
    optional driver only matters to the backends that need it.
    """

    def __init__(self, config: AdapterConfig):
        self._config = config
        self._conn: Any = None
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @property
    def config(self) -> AdapterConfig:
        return self._config

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        return self._config.db_type

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @abstractmethod
    def connect(self) -> None:
        """Establish the connection."""
        ...

    def disconnect(self) -> None:
        """Close the connection."""
        if self._conn is not None:
            conn, self._conn = self._conn, None
            conn.close()

    def get_connection(self) -> Any:
        """Return the DB-API connection, connecting on first use."""
        if self._conn is None:
            self.connect()
        return self._conn

    def __enter__(self) -> DatabaseAdapter:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._config.to_connection_string()!r})"


__all__ = [
    "DatabaseAdapter",
]
