"""SQL dialect abstraction for the relational backends.

Provides a ``Dialect`` protocol and one implementation per shipped
relational backend.  :class:`~tablespine.backends.relational.RelationalDatabase`
builds every statement through these methods and never embeds
backend-specific syntax itself.

Architecture::

    ┌──────────┐ ┌──────────────┐ ┌──────────────┐
    │ SQLite   │ │ PostgreSQL   │ │ MySQL        │
    │ ?, ?, ?  │ │ %s, %s, %s   │ │ %s, %s, %s   │
    │ "ident"  │ │ "ident"      │ │ `ident`      │
    │ BEGIN    │ │ (implicit)   │ │ START TRANS. │
    └──────────┘ └──────────────┘ └──────────────┘

Examples:
    >>> d = SQLiteDialect()
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.quote("order")
    '"order"'

Guardrails:
    ❌ DON'T: Interpolate values into SQL
    ✅ DO: Interpolate only quoted identifiers and placeholders

Tags:
    dialect, sql, portability, database, tablespine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from tablespine.errors import ConfigError
from tablespine.tables import Column, TableDescriptor


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Every method returns a SQL fragment or statement that is valid for the
    target database.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...

    def quote(self, identifier: str) -> str:
        """Quote a table or column name."""
        ...

    def column_type(self, column: Column) -> str:
        """DDL type for a column."""
        ...

    def begin_statement(self) -> str | None:
        """Statement that opens a transaction, or None if the driver opens one implicitly."""
        ...

    def create_table(self, table: TableDescriptor) -> str:
        """``CREATE TABLE IF NOT EXISTS`` statement for a descriptor."""
        ...

    def select_all(self, table: TableDescriptor) -> str: ...

    def insert(self, table: TableDescriptor) -> str: ...

    def count(self, table: TableDescriptor) -> str: ...


class _BaseDialect:
    """Statement builders shared by every dialect."""

    _types: dict[type, str] = {}
    _quote_char = '"'
    _placeholder = "?"

    def placeholders(self, count: int) -> str:
        return ", ".join(self._placeholder for _ in range(count))

    def quote(self, identifier: str) -> str:
        q = self._quote_char
        return f"{q}{identifier.replace(q, q + q)}{q}"

    def column_type(self, column: Column) -> str:
        return self._types[column.python_type]

    def begin_statement(self) -> str | None:
        return None

    def create_table(self, table: TableDescriptor) -> str:
        parts = []
        for column in table.columns:
            ddl = f"{self.quote(column.name)} {self.column_type(column)}"
            if column.name == table.primary_key:
                ddl += " PRIMARY KEY"
            elif not column.nullable:
                ddl += " NOT NULL"
            parts.append(ddl)
        return f"CREATE TABLE IF NOT EXISTS {self.quote(table.name)} ({', '.join(parts)})"

    def select_all(self, table: TableDescriptor) -> str:
        cols = ", ".join(self.quote(c) for c in table.column_names)
        return f"SELECT {cols} FROM {self.quote(table.name)}"

    def insert(self, table: TableDescriptor) -> str:
        cols = ", ".join(self.quote(c) for c in table.column_names)
        return (
            f"INSERT INTO {self.quote(table.name)} ({cols}) "
            f"VALUES ({self.placeholders(len(table.columns))})"
        )

    def count(self, table: TableDescriptor) -> str:
        return f"SELECT COUNT(*) FROM {self.quote(table.name)}"


class SQLiteDialect(_BaseDialect):
    """SQLite dialect: ``?`` placeholders, explicit ``BEGIN``."""

    _types = {int: "INTEGER", float: "REAL", str: "TEXT", bool: "INTEGER", bytes: "BLOB"}

    @property
    def name(self) -> str:
        return "sqlite"

    def begin_statement(self) -> str | None:
        return "BEGIN"


class PostgreSQLDialect(_BaseDialect):
    """PostgreSQL dialect: ``%s`` placeholders (psycopg2).

    psycopg2 opens a transaction implicitly before the first statement,
    so no begin statement is issued.
    """

    _types = {
        int: "BIGINT",
        float: "DOUBLE PRECISION",
        str: "TEXT",
        bool: "BOOLEAN",
        bytes: "BYTEA",
    }
    _placeholder = "%s"

    @property
    def name(self) -> str:
        return "postgresql"


class MySQLDialect(_BaseDialect):
    """MySQL / MariaDB dialect: ``%s`` placeholders, backtick quoting."""

    # TEXT cannot be a primary key without a prefix length
    _types = {
        int: "BIGINT",
        float: "DOUBLE",
        str: "VARCHAR(255)",
        bool: "BOOLEAN",
        bytes: "LONGBLOB",
    }
    _quote_char = "`"
    _placeholder = "%s"

    @property
    def name(self) -> str:
        return "mysql"

    def begin_statement(self) -> str | None:
        return "START TRANSACTION"


_DIALECTS: dict[str, type[_BaseDialect]] = {
    "sqlite": SQLiteDialect,
    "postgresql": PostgreSQLDialect,
    "postgres": PostgreSQLDialect,
    "mysql": MySQLDialect,
}


def get_dialect(name: str) -> Dialect:
    """Return the dialect for a backend name."""
    try:
        return _DIALECTS[name.lower()]()
    except KeyError:
        raise ConfigError(f"No SQL dialect for backend: {name}") from None


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "get_dialect",
]
