"""
Typed database configuration and host context.

Manifesto:
    A host hands the data-access layer a loosely-shaped mapping (usually
    a YAML file).  Every recognised key is validated once, at the
    resolution boundary, into a pydantic model.  Providers then read
    attributes, never ``dict.get`` chains.

Architecture:
    ::

        host config (YAML / mapping)
            └── <section>                       SectionSettings
                 ├── provider: "sqlite"
                 └── connection:                per-backend model
                      ├── autoscan / package / tables   ScanSettings
                      └── file / host / port / ...      backend keys

Features:
    - ``SectionSettings``: ``provider`` (required) + ``connection`` (optional)
    - ``ScanSettings``: ``autoscan`` / ``package`` / ``tables`` with the
      "tables required unless autoscan" rule
    - Backend models: ``MapSettings``, ``SQLiteSettings``,
      ``PostgreSQLSettings``, ``MySQLSettings``; unknown keys pass through
    - ``HostContext``: the calling component's name, configuration root and
      code root, loadable from YAML

Tags:
    tablespine, configuration, pydantic, yaml, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from tablespine.errors import InvalidConfigError, StorageError


class _PassThroughModel(BaseModel):
    """Base for connection models: backend-specific extra keys are kept."""

    model_config = ConfigDict(extra="allow", frozen=True)


class SectionSettings(BaseModel):
    """One database section of a host configuration."""

    model_config = ConfigDict(extra="allow", frozen=True)

    provider: str
    connection: dict[str, Any] | None = None


class ScanSettings(_PassThroughModel):
    """How a backend discovers its tables."""

    autoscan: bool = False
    package: str | None = None
    tables: list[str] | None = None

    @model_validator(mode="after")
    def _tables_required_without_autoscan(self) -> ScanSettings:
        if not self.autoscan and self.tables is None:
            raise ValueError("'tables' is required when 'autoscan' is false")
        return self


class MapSettings(_PassThroughModel):
    """In-memory map backend.  Scanning is optional."""

    autoscan: bool | None = None
    package: str | None = None
    tables: list[str] | None = None

    @property
    def wants_scan(self) -> bool:
        return self.autoscan is not None or self.tables is not None

    def scan_configuration(self) -> dict[str, Any]:
        return {"autoscan": bool(self.autoscan), "package": self.package, "tables": self.tables}

    def scan_settings(self) -> ScanSettings:
        return ScanSettings.model_validate(self.scan_configuration())


class SQLiteSettings(ScanSettings):
    """Embedded file backend."""

    file: str
    timeout: float = 5.0
    readonly: bool = False


class PostgreSQLSettings(ScanSettings):
    """PostgreSQL backend."""

    host: str = "localhost"
    port: int = 5432
    database: str
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    ssl_mode: str = "prefer"
    connect_timeout: int = 10


class MySQLSettings(ScanSettings):
    """MySQL / MariaDB backend."""

    host: str = "localhost"
    port: int = 3306
    database: str
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    charset: str = "utf8mb4"
    connect_timeout: int = 10


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Plain ``dict`` / ``list`` copy of a (possibly frozen) configuration value."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class HostContext:
    """
    Identity of the component asking for a database.

    ``config`` is the host's configuration root (read-only); ``package``
    is the importable package that autoscan walks for table types.
    """

    name: str
    config: Mapping[str, Any] = field(default_factory=dict)
    package: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "config", _freeze(dict(self.config)))

    def section(self, name: str) -> Mapping[str, Any] | None:
        """Return a nested configuration mapping, or None if absent."""
        value = self.config.get(name)
        if value is None:
            return None
        if not isinstance(value, Mapping):
            raise InvalidConfigError(name, value, f"Configuration section '{name}' is not a mapping")
        return value

    @classmethod
    def from_yaml(
        cls,
        path: str | Path,
        *,
        name: str | None = None,
        package: str | None = None,
    ) -> HostContext:
        """Load the configuration root from a YAML file."""
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                values = yaml.safe_load(f) or {}
        except OSError as e:
            raise StorageError(f"Cannot read configuration file {path}: {e}", cause=e) from e
        except yaml.YAMLError as e:
            raise InvalidConfigError(str(path), None, f"Malformed YAML in {path}: {e}", cause=e) from e

        if not isinstance(values, Mapping):
            raise InvalidConfigError(str(path), values, f"{path} must contain a mapping")
        return cls(name=name or path.stem, config=values, package=package)


__all__ = [
    "SectionSettings",
    "ScanSettings",
    "MapSettings",
    "SQLiteSettings",
    "PostgreSQLSettings",
    "MySQLSettings",
    "HostContext",
    "thaw",
]
