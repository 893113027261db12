"""Database adapters -- one DB-API connection per relational backend.

Each adapter is **import-guarded**: the database driver is only required at
``connect()`` time, not at import time.  Install the corresponding extra::

    pip install tablespine[postgresql]   # psycopg2-binary
    pip install tablespine[mysql]        # mysql-connector-python

Architecture::

    DatabaseAdapter (base.py)        Abstract base with connect/disconnect
        |-- SQLiteAdapter            stdlib sqlite3 (always available)
        |-- PostgreSQLAdapter        psycopg2 (optional)
        |-- MySQLAdapter             mysql.connector (optional)

    AdapterConfig (types.py)         Connection parameters
    DatabaseType (types.py)          Enum of supported backends

Guardrails:
    ❌ Importing optional drivers at module scope
    ✅ Import-guarded at ``connect()`` time with clear ``ConfigError``
"""

from .base import DatabaseAdapter
from .mysql import MySQLAdapter
from .postgresql import PostgreSQLAdapter
from .sqlite import SQLiteAdapter
from .types import AdapterConfig, DatabaseType

__all__ = [
    "AdapterConfig",
    "DatabaseType",
    "DatabaseAdapter",
    "SQLiteAdapter",
    "PostgreSQLAdapter",
    "MySQLAdapter",
]
