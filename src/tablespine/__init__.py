"""
tablespine: pluggable database handles selected by configuration.

A host application asks for a database by configuration section; a
registered provider builds the handle (in-memory map, SQLite, PostgreSQL
or MySQL) over the ``@table`` record types it discovers.  The dump
engine copies every row of every table from one handle into another
inside transactions on both sides, reporting progress as it goes.

Quick start::

    from dataclasses import dataclass
    from tablespine import HostContext, get_section_database, table

    @table(primary_key="id")
    @dataclass
    class User:
        id: int
        name: str

    host = HostContext(
        "myapp",
        {"database": {"provider": "sqlite",
                      "connection": {"file": "app.db", "tables": ["myapp.User"]}}},
    )
    with get_section_database(host) as db:
        db.query(User).insert(User(1, "ada"))
"""

__version__ = "0.1.0"

from tablespine.config import HostContext
from tablespine.dump import DumpEngine, DumpReport, ProgressEvent, dump_database, dump_database_async
from tablespine.errors import TableSpineError
from tablespine.handle import DatabaseHandle, TableQuery
from tablespine.providers import Provider, ProviderRegistry, provider_registry, register_provider
from tablespine.resolution import (
    get_current_database,
    get_database,
    get_section_database,
    host_scope,
)
from tablespine.scanner import EntityScanner
from tablespine.tables import TableDescriptor, describe, is_table, table

__all__ = [
    "__version__",
    "HostContext",
    "DatabaseHandle",
    "TableQuery",
    "TableDescriptor",
    "table",
    "is_table",
    "describe",
    "EntityScanner",
    "Provider",
    "ProviderRegistry",
    "provider_registry",
    "register_provider",
    "get_database",
    "get_section_database",
    "get_current_database",
    "host_scope",
    "DumpEngine",
    "DumpReport",
    "ProgressEvent",
    "dump_database",
    "dump_database_async",
    "TableSpineError",
]
