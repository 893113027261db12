"""Tests for RelationalDatabase over SQLite files."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from sample_app.models import Audit, Log, User
from tablespine.adapters import SQLiteAdapter
from tablespine.backends import RelationalDatabase
from tablespine.errors import QueryError, SchemaError, TransactionError
from tablespine.tables import describe

pytestmark = pytest.mark.integration


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "app.db"


@pytest.fixture
def database(db_path: Path):
    database = RelationalDatabase(SQLiteAdapter(str(db_path)), [describe(User), describe(Log)])
    yield database
    database.close()


class TestSchema:
    def test_creates_tables_and_directory(self, database, db_path) -> None:
        assert db_path.exists()
        conn = sqlite3.connect(db_path)
        try:
            names = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        finally:
            conn.close()
        assert names == {"user", "log"}

    def test_reopen_keeps_existing_tables(self, database, db_path) -> None:
        database.query(User).insert(User(1, "ada"))
        database.close()
        with RelationalDatabase(SQLiteAdapter(str(db_path)), [describe(User)]) as reopened:
            assert reopened.query(User).count() == 1

    def test_unmanaged_table_rejected(self, database) -> None:
        with pytest.raises(SchemaError, match="not managed"):
            database.query(Audit)


class TestQueries:
    def test_insert_select_round_trip(self, database) -> None:
        database.query(User).insert(User(1, "ada", True))
        database.query(User).insert(User(2, "grace", False))
        users = database.query(User).select()
        assert users == [User(1, "ada", True), User(2, "grace", False)]
        assert users[1].active is False

    def test_count(self, database) -> None:
        for i in range(5):
            database.query(Log).insert(Log(f"line {i}", level=i))
        assert database.query(Log).count() == 5

    def test_duplicate_primary_key(self, database) -> None:
        database.query(User).insert(User(1, "ada"))
        with pytest.raises(QueryError) as exc_info:
            database.query(User).insert(User(1, "again"))
        assert isinstance(exc_info.value.cause, sqlite3.IntegrityError)
        assert exc_info.value.context.table == "user"


class TestTransactions:
    def test_rollback(self, database) -> None:
        database.begin_transaction()
        database.query(User).insert(User(1, "ada"))
        database.rollback_transaction()
        assert database.query(User).count() == 0

    def test_commit_is_visible_to_other_connections(self, database, db_path) -> None:
        database.begin_transaction()
        database.query(User).insert(User(1, "ada"))
        database.commit_transaction()
        conn = sqlite3.connect(db_path)
        try:
            assert conn.execute('SELECT COUNT(*) FROM "user"').fetchone()[0] == 1
        finally:
            conn.close()

    def test_nested_begin_rejected(self, database) -> None:
        database.begin_transaction()
        with pytest.raises(TransactionError):
            database.begin_transaction()
        database.rollback_transaction()

    def test_close_releases_connection(self, database) -> None:
        database.close()
        assert not database.adapter.is_connected


class TestReadonly:
    def test_readonly_skips_table_creation(self, tmp_path) -> None:
        path = tmp_path / "ro.db"
        sqlite3.connect(path).close()
        with RelationalDatabase(SQLiteAdapter(str(path), readonly=True), [describe(User)]) as database:
            with pytest.raises(QueryError):
                database.query(User).count()
