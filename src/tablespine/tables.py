"""Record types and table descriptors.

Manifesto:
    A persisted record type is a plain dataclass carrying the ``@table``
    marker.  The marker is the only thing the rest of the system looks
    at: scanners test membership with :func:`is_table`, backends read
    the derived :class:`TableDescriptor` to build DDL and to turn
    records into rows and back.

Features:
    - ``@table`` / ``@table(name=..., primary_key=...)`` class decorator
    - ``is_table()`` membership predicate
    - ``describe()`` cached descriptor factory
    - ``TableDescriptor.to_row()`` / ``from_row()`` record conversion

Examples:
    >>> @table(primary_key="id")
    ... @dataclass
    ... class User:
    ...     id: int
    ...     name: str
    >>> describe(User).name
    'user'
    >>> describe(User).to_row(User(1, "ada"))
    {'id': 1, 'name': 'ada'}

Tags:
    tablespine, entity, marker, descriptor, dataclass

Doc-Types:
    api-reference
"""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, TypeVar, Union

from tablespine.errors import SchemaError

T = TypeVar("T")

TABLE_MARKER = "__tablespine_table__"

SUPPORTED_TYPES: tuple[type, ...] = (int, float, str, bool, bytes)


@dataclass(frozen=True)
class TableOptions:
    """Options recorded on a class by the ``@table`` decorator."""

    name: str | None = None
    primary_key: str | None = None


@dataclass(frozen=True)
class Column:
    """One column of a record type."""

    name: str
    python_type: type
    nullable: bool = False


def table(
    cls: type[T] | None = None,
    *,
    name: str | None = None,
    primary_key: str | None = None,
) -> Any:
    """Mark a dataclass as a persisted record type.

    Usable bare (``@table``) or with options (``@table(name="users")``).
    """

    def decorator(target: type[T]) -> type[T]:
        if not isinstance(target, type) or not dataclasses.is_dataclass(target):
            raise SchemaError(f"@table requires a dataclass, got {target!r}")
        setattr(target, TABLE_MARKER, TableOptions(name=name, primary_key=primary_key))
        return target

    if cls is not None:
        return decorator(cls)
    return decorator


def is_table(obj: Any) -> bool:
    """True if ``obj`` is a class carrying the ``@table`` marker itself.

    Subclasses of a marked class are not tables unless marked too.
    """
    return isinstance(obj, type) and isinstance(obj.__dict__.get(TABLE_MARKER), TableOptions)


def type_id(cls: type) -> str:
    """Fully-qualified, stable identifier of a type."""
    return f"{cls.__module__}.{cls.__qualname__}"


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(typing.get_args(annotation)) == 2:
            return args[0], True
    return annotation, False


@dataclass(frozen=True)
class TableDescriptor:
    """
    Identifies one persisted record type.

    Equality and hashing consider only ``record_type``: two descriptors for
    the same class are the same table, whatever handle produced them.
    """

    record_type: type
    name: str = field(compare=False)
    columns: tuple[Column, ...] = field(compare=False)
    primary_key: str | None = field(default=None, compare=False)

    @property
    def type_id(self) -> str:
        return type_id(self.record_type)

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def to_row(self, record: Any) -> dict[str, Any]:
        """Destructure a record into a column -> value mapping."""
        if not isinstance(record, self.record_type):
            raise SchemaError(
                f"Expected a {self.record_type.__name__} record, got {type(record).__name__}"
            )
        return {c.name: getattr(record, c.name) for c in self.columns}

    def from_row(self, row: Mapping[str, Any]) -> Any:
        """Construct a record from a column -> value mapping."""
        values: dict[str, Any] = {}
        for column in self.columns:
            value = row[column.name]
            if value is not None and column.python_type is bool:
                value = bool(value)
            values[column.name] = value
        return self.record_type(**values)

    def __repr__(self) -> str:
        return f"TableDescriptor({self.type_id!r}, name={self.name!r})"


@lru_cache(maxsize=None)
def _describe_type(record_type: type) -> TableDescriptor:
    if not is_table(record_type):
        raise SchemaError(f"{type_id(record_type)} is not marked with @table")

    options: TableOptions = record_type.__dict__[TABLE_MARKER]
    try:
        hints = typing.get_type_hints(record_type)
    except Exception as e:
        raise SchemaError(f"Cannot evaluate annotations of {type_id(record_type)}", cause=e) from e

    columns = []
    for f in dataclasses.fields(record_type):
        python_type, nullable = _unwrap_optional(hints.get(f.name, Any))
        if python_type not in SUPPORTED_TYPES:
            raise SchemaError(
                f"Unsupported column type {python_type!r} for "
                f"{type_id(record_type)}.{f.name}"
            )
        columns.append(Column(name=f.name, python_type=python_type, nullable=nullable))

    if options.primary_key is not None and options.primary_key not in {c.name for c in columns}:
        raise SchemaError(
            f"Primary key '{options.primary_key}' is not a field of {type_id(record_type)}"
        )

    return TableDescriptor(
        record_type=record_type,
        name=options.name or record_type.__name__.lower(),
        columns=tuple(columns),
        primary_key=options.primary_key,
    )


def describe(table_or_type: TableDescriptor | type) -> TableDescriptor:
    """Return the descriptor of a marked record type (descriptors pass through)."""
    if isinstance(table_or_type, TableDescriptor):
        return table_or_type
    return _describe_type(table_or_type)


TableLike = Union[TableDescriptor, type]


__all__ = [
    "TABLE_MARKER",
    "TableOptions",
    "Column",
    "TableDescriptor",
    "TableLike",
    "table",
    "is_table",
    "type_id",
    "describe",
]
