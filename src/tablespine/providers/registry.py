"""Provider registry.

Manifesto:
    Consumers should never hard-code backend classes.  The registry maps
    provider names to :class:`Provider` objects and ``resolve()`` turns a
    name plus configuration into a checked database handle.

Features:
    - ``ProviderRegistry`` with pre-registered built-ins
      (``map``, ``sqlite``, ``postgresql`` / ``postgres``, ``mysql``)
    - ``register()`` upserts; ``unregister()`` returns the old provider
    - ``resolve()`` fails with typed errors instead of returning ``None``
      or an unchecked handle
    - Every method serialized by one re-entrant lock
    - ``snapshot()`` / ``restore()`` for test isolation

Guardrails:
    ❌ ``RelationalDatabase(SQLiteAdapter(...), tables)`` in host code
    ✅ ``provider_registry.resolve("sqlite", host, connection)``

Tags:
    tablespine, registry, provider, factory, singleton, thread-safe

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, TypeVar

from tablespine.config import HostContext
from tablespine.errors import (
    HandleTypeMismatchError,
    ProviderNotFoundError,
    ProviderReturnedInvalidError,
)
from tablespine.handle import DatabaseHandle
from tablespine.logging import get_logger

from .base import Configuration, FactoryProvider, Provider
from .builtin import MapProvider, MySQLProvider, PostgreSQLProvider, SQLiteProvider

logger = get_logger(__name__)

H = TypeVar("H", bound=DatabaseHandle)


class ProviderRegistry:
    """
    Registry of database providers.

    Pre-registered providers:
    - ``map``: :class:`MapProvider`
    - ``sqlite``: :class:`SQLiteProvider`
    - ``postgresql`` / ``postgres``: :class:`PostgreSQLProvider`
    - ``mysql``: :class:`MySQLProvider`

    Names are case-sensitive; registering an existing name replaces it.
    """

    def __init__(self, *, defaults: bool = True):
        self._lock = threading.RLock()
        self._providers: dict[str, Provider] = {}
        if defaults:
            self._register_defaults()

    def _register_defaults(self) -> None:
        postgresql = PostgreSQLProvider()
        self._providers["map"] = MapProvider()
        self._providers["sqlite"] = SQLiteProvider()
        self._providers["postgresql"] = postgresql
        self._providers["postgres"] = postgresql  # Alias
        self._providers["mysql"] = MySQLProvider()

    def register(self, name: str, provider: Provider | Callable[..., Any]) -> None:
        """Register (or replace) a provider.  Plain callables are wrapped."""
        if not isinstance(provider, Provider):
            provider = FactoryProvider(provider)
        with self._lock:
            replaced = name in self._providers
            self._providers[name] = provider
        logger.debug("provider_registered", name=name, provider=repr(provider), replaced=replaced)

    def unregister(self, name: str) -> Provider | None:
        """Remove a provider, returning it (or None if it was not registered)."""
        with self._lock:
            provider = self._providers.pop(name, None)
        if provider is not None:
            logger.debug("provider_unregistered", name=name)
        return provider

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._providers

    def get(self, name: str) -> Provider:
        """Return the provider registered under ``name``."""
        with self._lock:
            try:
                return self._providers[name]
            except KeyError:
                raise ProviderNotFoundError(name) from None

    def list_providers(self) -> list[str]:
        """List registered provider names."""
        with self._lock:
            return sorted(self._providers)

    def resolve(
        self,
        name: str,
        host: HostContext,
        configuration: Configuration | None,
        expected_type: type[H] = DatabaseHandle,  # type: ignore[assignment]
    ) -> H:
        """Build a database handle with the named provider.

        Raises:
            ProviderNotFoundError: nothing is registered under ``name``
            ProviderReturnedInvalidError: the provider returned None or a non-handle
            HandleTypeMismatchError: the handle is not an ``expected_type``
        """
        provider = self.get(name)
        handle = provider.get(host, configuration)

        if not isinstance(handle, DatabaseHandle):
            raise ProviderReturnedInvalidError(name, handle)
        if not isinstance(handle, expected_type):
            handle.close()
            raise HandleTypeMismatchError(name, expected_type, type(handle))

        logger.info(
            "database_resolved",
            provider=name,
            host=host.name,
            handle=type(handle).__name__,
            tables=len(handle.tables()),
        )
        return handle

    def snapshot(self) -> dict[str, Provider]:
        """Copy of the current name -> provider mapping."""
        with self._lock:
            return dict(self._providers)

    def restore(self, snapshot: dict[str, Provider]) -> None:
        """Replace the registry contents with a previous :meth:`snapshot`."""
        with self._lock:
            self._providers = dict(snapshot)


# Global registry
provider_registry = ProviderRegistry()


def register_provider(name: str, provider: Provider | Callable[..., Any]) -> None:
    """Register a provider on the global registry."""
    provider_registry.register(name, provider)


def unregister_provider(name: str) -> Provider | None:
    """Unregister a provider from the global registry."""
    return provider_registry.unregister(name)


def has_provider(name: str) -> bool:
    return provider_registry.has(name)


__all__ = [
    "ProviderRegistry",
    "provider_registry",
    "register_provider",
    "unregister_provider",
    "has_provider",
]
