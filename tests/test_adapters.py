"""Tests for the relational adapters and their optional drivers."""

from __future__ import annotations

import sys
from unittest.mock import MagicMock, patch

import pytest

from tablespine.adapters import (
    AdapterConfig,
    DatabaseType,
    MySQLAdapter,
    PostgreSQLAdapter,
    SQLiteAdapter,
)
from tablespine.backends import RelationalDatabase
from tablespine.config import HostContext
from tablespine.errors import BackendConstructionError, ConfigError, DatabaseConnectionError
from tablespine.providers import provider_registry


def _fake_driver() -> MagicMock:
    driver = MagicMock()
    driver.Error = type("Error", (Exception,), {})
    return driver


class TestAdapterConfig:
    def test_sqlite_connection_string(self) -> None:
        assert AdapterConfig(path="app.db").to_connection_string() == "app.db"
        assert AdapterConfig().to_connection_string() == ":memory:"

    def test_password_is_masked(self) -> None:
        config = AdapterConfig(
            db_type=DatabaseType.POSTGRESQL,
            host="db",
            database="app",
            username="spine",
            password="hunter2",
        )
        assert config.to_connection_string() == "postgresql://spine:***@db:5432/app"


class TestSQLiteAdapter:
    def test_lazy_connect(self) -> None:
        adapter = SQLiteAdapter()
        assert not adapter.is_connected
        adapter.get_connection()
        assert adapter.is_connected
        adapter.disconnect()
        assert not adapter.is_connected

    def test_context_manager(self, tmp_path) -> None:
        with SQLiteAdapter(str(tmp_path / "a.db")) as adapter:
            assert adapter.is_connected
        assert not adapter.is_connected

    def test_dialect(self) -> None:
        assert SQLiteAdapter().dialect.name == "sqlite"


class TestPostgreSQLAdapter:
    def test_missing_driver(self) -> None:
        with patch.dict(sys.modules, {"psycopg2": None}):
            with pytest.raises(ConfigError, match="psycopg2 is required"):
                PostgreSQLAdapter(database="app").connect()

    def test_connect_passes_parameters(self) -> None:
        driver = _fake_driver()
        with patch.dict(sys.modules, {"psycopg2": driver}):
            PostgreSQLAdapter(host="db", database="app", username="spine", ssl_mode="require").connect()
        kwargs = driver.connect.call_args.kwargs
        assert kwargs["host"] == "db"
        assert kwargs["dbname"] == "app"
        assert kwargs["sslmode"] == "require"

    def test_driver_error(self) -> None:
        driver = _fake_driver()
        driver.connect.side_effect = driver.Error("refused")
        with patch.dict(sys.modules, {"psycopg2": driver}):
            with pytest.raises(DatabaseConnectionError, match="refused"):
                PostgreSQLAdapter(database="app").connect()


class TestMySQLAdapter:
    def test_missing_driver(self) -> None:
        with patch.dict(sys.modules, {"mysql": None, "mysql.connector": None}):
            with pytest.raises(ConfigError, match="mysql-connector-python is required"):
                MySQLAdapter(database="app").connect()

    def test_autocommit_off(self) -> None:
        connector = _fake_driver()
        package = MagicMock(connector=connector)
        with patch.dict(sys.modules, {"mysql": package, "mysql.connector": connector}):
            MySQLAdapter(database="app").connect()
        kwargs = connector.connect.call_args.kwargs
        assert kwargs["autocommit"] is False
        assert kwargs["charset"] == "utf8mb4"
        assert kwargs["port"] == 3306


class TestNetworkedProviders:
    def test_postgres_provider_creates_tables(self) -> None:
        driver = _fake_driver()
        connection = driver.connect.return_value
        host = HostContext(name="sample")
        configuration = {"database": "app", "tables": ["sample_app.models.User"]}

        with patch.dict(sys.modules, {"psycopg2": driver}):
            database = provider_registry.resolve("postgres", host, configuration, RelationalDatabase)

        assert database.dialect.name == "postgresql"
        statement = connection.cursor.return_value.execute.call_args_list[0].args[0]
        assert statement.startswith('CREATE TABLE IF NOT EXISTS "user"')
        database.close()
        connection.close.assert_called_once()

    def test_missing_driver_is_a_construction_error(self) -> None:
        host = HostContext(name="sample")
        with patch.dict(sys.modules, {"mysql": None, "mysql.connector": None}):
            with pytest.raises(BackendConstructionError) as exc_info:
                provider_registry.resolve("mysql", host, {"database": "app", "tables": []})
        assert isinstance(exc_info.value.cause, ConfigError)
