"""PostgreSQL database adapter (networked relational store).

Uses ``psycopg2``.  This adapter is import-guarded: if ``psycopg2`` is not
installed a clear :class:`~tablespine.errors.ConfigError` is raised at
``connect()`` time.

Install the driver::

    pip install tablespine[postgresql]
"""

from __future__ import annotations

from typing import Any

from tablespine.errors import ConfigError, DatabaseConnectionError

from .base import DatabaseAdapter
from .types import AdapterConfig, DatabaseType


class PostgreSQLAdapter(DatabaseAdapter):
    """PostgreSQL database adapter."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 5432,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        ssl_mode: str = "prefer",
        connect_timeout: int = 10,
        **kwargs: Any,
    ):
        config = AdapterConfig(
            db_type=DatabaseType.POSTGRESQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            connect_timeout=connect_timeout,
            options={**kwargs, "sslmode": ssl_mode},
        )
        super().__init__(config)

    def connect(self) -> None:
        """Connect to PostgreSQL."""
        try:
            import psycopg2
        except ImportError:
            raise ConfigError(
                "psycopg2 is required for PostgreSQL. Install with: pip install psycopg2-binary"
            ) from None

        try:
            self._conn = psycopg2.connect(
                host=self._config.host,
                port=self._config.port,
                dbname=self._config.database,
                user=self._config.username,
                password=self._config.password,
                connect_timeout=self._config.connect_timeout,
                **self._config.options,
            )
        except psycopg2.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to PostgreSQL: {e}",
                cause=e,
            ) from e


__all__ = [
    "PostgreSQLAdapter",
]
