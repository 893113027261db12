"""Built-in providers: map, sqlite, postgresql and mysql.

Relational providers always run the :class:`EntityScanner`; the map
provider only when the connection configuration asks for it.
"""

from __future__ import annotations

from tablespine.adapters import DatabaseAdapter, MySQLAdapter, PostgreSQLAdapter, SQLiteAdapter
from tablespine.backends import MapDatabase, RelationalDatabase
from tablespine.config import (
    HostContext,
    MapSettings,
    MySQLSettings,
    PostgreSQLSettings,
    ScanSettings,
    SQLiteSettings,
)
from tablespine.errors import BackendConstructionError, ConfigError, DatabaseConnectionError, QueryError
from tablespine.logging import get_logger
from tablespine.scanner import EntityScanner

from .base import Configuration, parse_configuration

logger = get_logger(__name__)


class MapProvider:
    """In-memory map backend; needs no configuration."""

    name = "map"

    def __init__(self, scanner: EntityScanner | None = None):
        self._scanner = scanner or EntityScanner()

    def get(self, host: HostContext, configuration: Configuration | None) -> MapDatabase:
        if configuration is None:
            return MapDatabase()
        settings = parse_configuration(MapSettings, configuration, provider=self.name)
        if not settings.wants_scan:
            return MapDatabase()
        scan = parse_configuration(ScanSettings, settings.scan_configuration(), provider=self.name)
        return MapDatabase(self._scanner.scan(host, scan))


class _RelationalProvider:
    """Shared flow: validate, scan, connect, create tables."""

    name: str
    settings_model: type[ScanSettings]

    def __init__(self, scanner: EntityScanner | None = None):
        self._scanner = scanner or EntityScanner()

    def get(self, host: HostContext, configuration: Configuration | None) -> RelationalDatabase:
        settings = parse_configuration(self.settings_model, configuration, provider=self.name)
        tables = self._scanner.scan(host, settings)
        adapter = self.create_adapter(settings)
        try:
            database = RelationalDatabase(adapter, tables)
        except (DatabaseConnectionError, ConfigError, QueryError) as e:
            raise BackendConstructionError(
                f"Provider '{self.name}' could not connect: {e.message}", cause=e
            ).with_context(provider=self.name, host=host.name) from e
        logger.info(
            "relational_database_opened",
            provider=self.name,
            host=host.name,
            target=adapter.config.to_connection_string(),
            tables=len(tables),
        )
        return database

    def create_adapter(self, settings: ScanSettings) -> DatabaseAdapter:
        raise NotImplementedError


class SQLiteProvider(_RelationalProvider):
    """Embedded file store (``file`` key)."""

    name = "sqlite"
    settings_model = SQLiteSettings

    def create_adapter(self, settings: SQLiteSettings) -> SQLiteAdapter:  # type: ignore[override]
        return SQLiteAdapter(settings.file, readonly=settings.readonly, timeout=settings.timeout)


class PostgreSQLProvider(_RelationalProvider):
    """Networked relational store (PostgreSQL)."""

    name = "postgresql"
    settings_model = PostgreSQLSettings

    def create_adapter(self, settings: PostgreSQLSettings) -> PostgreSQLAdapter:  # type: ignore[override]
        return PostgreSQLAdapter(
            host=settings.host,
            port=settings.port,
            database=settings.database,
            username=settings.username,
            password=settings.password,
            ssl_mode=settings.ssl_mode,
            connect_timeout=settings.connect_timeout,
        )


class MySQLProvider(_RelationalProvider):
    """Networked relational store (MySQL / MariaDB)."""

    name = "mysql"
    settings_model = MySQLSettings

    def create_adapter(self, settings: MySQLSettings) -> MySQLAdapter:  # type: ignore[override]
        return MySQLAdapter(
            host=settings.host,
            port=settings.port,
            database=settings.database,
            username=settings.username,
            password=settings.password,
            charset=settings.charset,
            connect_timeout=settings.connect_timeout,
        )


__all__ = [
    "MapProvider",
    "SQLiteProvider",
    "PostgreSQLProvider",
    "MySQLProvider",
]
