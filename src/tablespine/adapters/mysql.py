"""MySQL database adapter (networked relational store).

Uses ``mysql.connector`` from the ``mysql-connector-python`` package.
MySQL uses **format** (``%s``) placeholder style.

Install the driver::

    pip install tablespine[mysql]

This adapter is import-guarded: if ``mysql.connector`` is not installed
a clear :class:`~tablespine.errors.ConfigError` is raised at
``connect()`` time.
"""

from __future__ import annotations

from typing import Any

from tablespine.errors import ConfigError, DatabaseConnectionError

from .base import DatabaseAdapter
from .types import AdapterConfig, DatabaseType


class MySQLAdapter(DatabaseAdapter):
    """MySQL / MariaDB database adapter."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        charset: str = "utf8mb4",
        connect_timeout: int = 10,
        **kwargs: Any,
    ):
        config = AdapterConfig(
            db_type=DatabaseType.MYSQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            connect_timeout=connect_timeout,
            options={**kwargs, "charset": charset},
        )
        super().__init__(config)

    def connect(self) -> None:
        """Connect to MySQL with autocommit off."""
        try:
            import mysql.connector
        except ImportError:
            raise ConfigError(
                "mysql-connector-python is required for MySQL. "
                "Install with: pip install mysql-connector-python"
            ) from None

        try:
            self._conn = mysql.connector.connect(
                host=self._config.host,
                port=self._config.port,
                database=self._config.database,
                user=self._config.username,
                password=self._config.password,
                connection_timeout=self._config.connect_timeout,
                autocommit=False,
                **self._config.options,
            )
        except mysql.connector.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to MySQL: {e}",
                cause=e,
            ) from e


__all__ = [
    "MySQLAdapter",
]
