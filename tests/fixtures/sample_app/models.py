"""Record types of the sample application."""

from __future__ import annotations

from dataclasses import dataclass

from tablespine import table


@table(primary_key="id")
@dataclass
class User:
    id: int
    name: str
    active: bool = True


@table
@dataclass
class Log:
    message: str
    level: int = 0


@table(name="audit_entries")
@dataclass
class Audit:
    action: str
    detail: str | None = None


@dataclass
class NotATable:
    value: int


Member = User
