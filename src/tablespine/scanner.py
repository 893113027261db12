"""
Entity discovery: which record types does a database handle manage?

Manifesto:
    A host either lists its tables explicitly or lets the scanner find
    every ``@table`` class under its code root.  The two modes have
    deliberately different failure policies:

    - **Autoscan** tolerates modules that fail to import (they are logged
      and skipped) but not a code root that cannot be enumerated.
    - **Explicit** is all-or-nothing: one unresolvable name fails the whole
      scan, so no handle is ever built over a partial table set.

Architecture:
    ::

        EntityScanner.scan(host, settings)
            │
            ├── settings.autoscan ──► _autoscan(host.package, settings.package)
            │                          pkgutil.iter_modules + importlib
            │                          keep is_table(cls) defined in module
            │
            └── else ──────────────► _resolve_explicit(settings.tables)
                                       import_module + attribute walk
            ▼
        ordered, identity-deduplicated tuple[TableDescriptor, ...]

Tags:
    tablespine, entity-scanner, discovery, autoscan, importlib

Doc-Types:
    api-reference
"""

from __future__ import annotations

import importlib
import pkgutil
import zipfile
import zipimport
from collections.abc import Callable, Iterable, Iterator
from types import ModuleType
from typing import Any

from tablespine.config import HostContext, ScanSettings
from tablespine.errors import ScanIOError, UnknownTableError
from tablespine.logging import get_logger
from tablespine.tables import TableDescriptor, describe, is_table, type_id

logger = get_logger(__name__)

_ENUMERATION_ERRORS = (OSError, zipimport.ZipImportError, zipfile.BadZipFile)


class EntityScanner:
    """
    Resolves the table set of a database handle.

    ``predicate`` is the "is this class a table" test; it defaults to the
    ``@table`` marker.
    """

    def __init__(self, predicate: Callable[[Any], bool] = is_table):
        self._predicate = predicate

    def scan(self, host: HostContext, settings: ScanSettings) -> tuple[TableDescriptor, ...]:
        if settings.autoscan:
            types_found = self._autoscan(host, settings.package)
        else:
            types_found = self._resolve_explicit(settings.tables or [])
        tables = tuple(describe(cls) for cls in _unique(types_found))
        logger.debug(
            "scan_completed",
            host=host.name,
            mode="autoscan" if settings.autoscan else "explicit",
            tables=[t.type_id for t in tables],
        )
        return tables

    # ── Autoscan ─────────────────────────────────────────────────

    def _autoscan(self, host: HostContext, prefix: str | None) -> list[type]:
        if not host.package:
            raise ScanIOError(f"Host '{host.name}' has no code root to scan")

        try:
            root = importlib.import_module(host.package)
        except ImportError as e:
            raise ScanIOError(f"Cannot locate code root '{host.package}': {e}", cause=e) from e

        found: list[type] = []
        for module in self._walk(root, prefix):
            found.extend(
                cls
                for cls in _classes_defined_in(module)
                if self._predicate(cls) and (prefix is None or type_id(cls).startswith(prefix))
            )
        return found

    def _walk(self, root: ModuleType, prefix: str | None = None) -> Iterator[ModuleType]:
        yield root
        yield from self._walk_children(root, prefix)

    def _walk_children(self, package: ModuleType, prefix: str | None) -> Iterator[ModuleType]:
        path = getattr(package, "__path__", None)
        if path is None:
            return

        try:
            infos = list(pkgutil.iter_modules(path, prefix=f"{package.__name__}."))
        except _ENUMERATION_ERRORS as e:
            raise ScanIOError(f"Failed to enumerate '{package.__name__}': {e}", cause=e) from e

        for info in infos:
            # out-of-scope modules are never imported
            if not _may_contain(info.name, prefix):
                continue
            try:
                module = importlib.import_module(info.name)
            except Exception as e:
                logger.warning("scan_module_skipped", module=info.name, error=str(e))
                continue
            yield module
            if info.ispkg:
                yield from self._walk_children(module, prefix)

    # ── Explicit ─────────────────────────────────────────────────

    def _resolve_explicit(self, names: Iterable[str]) -> list[type]:
        return [self._resolve_name(name) for name in names]

    def _resolve_name(self, name: str) -> type:
        obj = _import_qualified(name)
        if not self._predicate(obj):
            raise UnknownTableError(name, "not a table type")
        return obj


def _import_qualified(name: str) -> Any:
    """Import ``package.module.Class[.Nested]``, trying the longest module prefix first."""
    parts = name.split(".")
    if len(parts) < 2 or not all(parts):
        raise UnknownTableError(name, "expected a fully-qualified type name")

    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            obj: Any = importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            if e.name is not None and (module_name == e.name or module_name.startswith(e.name + ".")):
                continue
            raise UnknownTableError(name, str(e), cause=e) from e
        except Exception as e:
            raise UnknownTableError(name, f"import failed: {e}", cause=e) from e

        for attr in parts[split:]:
            try:
                obj = getattr(obj, attr)
            except AttributeError:
                break
        else:
            return obj
        raise UnknownTableError(name, f"'{module_name}' has no attribute path {'.'.join(parts[split:])}")

    raise UnknownTableError(name, "module not found")


def _classes_defined_in(module: ModuleType) -> Iterator[type]:
    # vars() keeps definition order
    for obj in list(vars(module).values()):
        if isinstance(obj, type) and obj.__module__ == module.__name__:
            yield obj


def _unique(types_found: Iterable[type]) -> list[type]:
    seen: set[int] = set()
    unique: list[type] = []
    for cls in types_found:
        if id(cls) not in seen:
            seen.add(id(cls))
            unique.append(cls)
    return unique


def _may_contain(module_name: str, prefix: str | None) -> bool:
    """True if a type id under ``module_name`` (or its submodules) can start with ``prefix``."""
    if prefix is None:
        return True
    dotted = f"{module_name}."
    return dotted.startswith(prefix) or prefix.startswith(dotted)


__all__ = [
    "EntityScanner",
]
