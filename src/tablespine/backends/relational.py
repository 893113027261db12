"""Relational backend over one DB-API connection.

Manifesto:
    SQLite, PostgreSQL and MySQL differ in drivers and SQL syntax but not
    in what the data-access layer needs from them: create the managed
    tables, select every row, insert a row, count rows, and run inside
    an explicit transaction.  :class:`RelationalDatabase` implements the
    handle contract once, on top of a :class:`DatabaseAdapter` for the
    connection and a :class:`Dialect` for the SQL.

Features:
    - ``CREATE TABLE IF NOT EXISTS`` for every managed table on open
    - Autocommit outside a transaction: each write commits immediately
    - Driver exceptions wrapped into :class:`QueryError` /
      :class:`TransactionError` with the cause chained

Tags:
    tablespine, database, relational, sqlite, postgresql, mysql

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from tablespine.adapters.base import DatabaseAdapter
from tablespine.errors import (
    DatabaseConnectionError,
    QueryError,
    SchemaError,
    TransactionCommitError,
    TransactionError,
    TransactionStartError,
)
from tablespine.handle import DatabaseHandle, TableQuery
from tablespine.logging import get_logger
from tablespine.tables import TableDescriptor

logger = get_logger(__name__)


class RelationalTableQuery(TableQuery[Any]):
    def __init__(self, table: TableDescriptor, database: RelationalDatabase):
        super().__init__(table)
        self._database = database

    def select(self) -> list[Any]:
        sql = self._database.dialect.select_all(self.table)
        columns = self.table.column_names
        rows = self._database._fetchall(sql, table=self.table)
        return [self.table.from_row(dict(zip(columns, row))) for row in rows]

    def insert(self, record: Any) -> None:
        row = self.table.to_row(record)
        sql = self._database.dialect.insert(self.table)
        self._database._write(sql, tuple(row.values()), table=self.table)

    def count(self) -> int:
        sql = self._database.dialect.count(self.table)
        return int(self._database._fetchall(sql, table=self.table)[0][0])


class RelationalDatabase(DatabaseHandle):
    """
    Handle backed by a relational database adapter.

    The adapter connection is opened on construction and released by
    :meth:`close`.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        tables: Iterable[TableDescriptor] = (),
        *,
        create_tables: bool = True,
    ):
        super().__init__(tables)
        self._adapter = adapter
        self.dialect = adapter.dialect
        self._conn = adapter.get_connection()
        if create_tables and not adapter.config.readonly:
            try:
                self._create_tables()
            except BaseException:
                adapter.disconnect()
                raise

    @property
    def adapter(self) -> DatabaseAdapter:
        return self._adapter

    def _create_tables(self) -> None:
        for table in self._tables:
            self._write(self.dialect.create_table(table), (), table=table)
        logger.debug(
            "relational_tables_ready",
            backend=self.dialect.name,
            tables=[t.name for t in self._tables],
        )

    # ── Statement execution ──────────────────────────────────────

    def _execute(self, sql: str, params: tuple, table: TableDescriptor | None) -> Any:
        cursor = self._conn.cursor()
        try:
            cursor.execute(sql, params)
        except Exception as e:
            cursor.close()
            raise QueryError(f"{self.dialect.name} statement failed: {e}", cause=e).with_context(
                table=table.name if table else None
            ) from e
        return cursor

    def _fetchall(self, sql: str, table: TableDescriptor | None = None) -> list[Any]:
        cursor = self._execute(sql, (), table)
        try:
            return list(cursor.fetchall())
        finally:
            cursor.close()

    def _write(self, sql: str, params: tuple, table: TableDescriptor | None = None) -> None:
        cursor = self._execute(sql, params, table)
        cursor.close()
        if not self._in_transaction:
            self._conn.commit()

    # ── Transaction hooks ────────────────────────────────────────

    def _begin(self) -> None:
        statement = self.dialect.begin_statement()
        if statement is None:
            return
        try:
            cursor = self._conn.cursor()
            cursor.execute(statement)
            cursor.close()
        except Exception as e:
            raise TransactionStartError(
                f"Could not begin a {self.dialect.name} transaction: {e}", cause=e
            ) from e

    def _commit(self) -> None:
        try:
            self._conn.commit()
        except Exception as e:
            raise TransactionCommitError(
                f"Could not commit the {self.dialect.name} transaction: {e}", cause=e
            ) from e

    def _rollback(self) -> None:
        try:
            self._conn.rollback()
        except Exception as e:
            raise TransactionError(
                f"Could not roll back the {self.dialect.name} transaction: {e}", cause=e
            ) from e

    # ── Queries / lifecycle ──────────────────────────────────────

    def _query(self, table: TableDescriptor) -> RelationalTableQuery:
        if table not in self._tables:
            raise SchemaError(f"Table {table.type_id} is not managed by this {self.dialect.name} database")
        return RelationalTableQuery(table, self)

    def _release(self) -> None:
        try:
            self._adapter.disconnect()
        except Exception as e:
            raise DatabaseConnectionError(
                f"Failed to close {self.dialect.name} connection: {e}", cause=e
            ) from e


__all__ = [
    "RelationalDatabase",
    "RelationalTableQuery",
]
