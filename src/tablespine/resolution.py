"""
Configuration resolution: from a host's configuration to a database handle.

Three entry points, from most explicit to most convenient:

1. :func:`get_database`: provider name + connection mapping.
2. :func:`get_section_database`: a host and the name of a section holding
   ``provider`` and (optionally) ``connection``.
3. :func:`get_current_database`: like (2), with the host taken from the
   current context binding (:func:`host_scope` / :func:`bind_host`).

The "current host" is injected explicitly by the host application; it is
never inferred from the call stack.  Without a binding the call fails
with :class:`CallerResolutionError` instead of guessing.

Usage::

    host = HostContext.from_yaml("config.yml", package="myapp")

    with host_scope(host):
        db = get_current_database()          # reads the 'database' section

    db = get_section_database(host, "archive")
    db = get_database("map", host, None)
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import TypeVar

from pydantic import ValidationError as PydanticValidationError

from tablespine.config import HostContext, SectionSettings, thaw
from tablespine.errors import (
    CallerResolutionError,
    InvalidConfigError,
    MissingConfigError,
    MissingProviderKeyError,
)
from tablespine.handle import DatabaseHandle
from tablespine.providers.base import Configuration
from tablespine.providers.registry import ProviderRegistry, provider_registry

H = TypeVar("H", bound=DatabaseHandle)

DEFAULT_SECTION = "database"

_current_host: ContextVar[HostContext | None] = ContextVar("tablespine_current_host", default=None)


# ── Host binding ─────────────────────────────────────────────────────────


def bind_host(host: HostContext) -> Token[HostContext | None]:
    """Make ``host`` the current host; returns a token for :func:`unbind_host`."""
    return _current_host.set(host)


def unbind_host(token: Token[HostContext | None]) -> None:
    _current_host.reset(token)


@contextmanager
def host_scope(host: HostContext) -> Iterator[HostContext]:
    """Bind ``host`` as the current host for the duration of the block."""
    token = bind_host(host)
    try:
        yield host
    finally:
        unbind_host(token)


def current_host() -> HostContext:
    """Return the bound host.

    Raises:
        CallerResolutionError: no host is bound in this context
    """
    host = _current_host.get()
    if host is None:
        raise CallerResolutionError(
            "No host is bound in this context; use host_scope(host) or pass the host explicitly"
        )
    return host


# ── Entry points ─────────────────────────────────────────────────────────


def get_database(
    provider: str,
    host: HostContext,
    configuration: Configuration | None,
    expected_type: type[H] = DatabaseHandle,  # type: ignore[assignment]
    *,
    registry: ProviderRegistry | None = None,
) -> H:
    """Resolve a handle from an explicit provider name and connection mapping."""
    return (registry or provider_registry).resolve(provider, host, configuration, expected_type)


def get_section_database(
    host: HostContext,
    section: str = DEFAULT_SECTION,
    expected_type: type[H] = DatabaseHandle,  # type: ignore[assignment]
    *,
    registry: ProviderRegistry | None = None,
) -> H:
    """Resolve a handle from ``host.config[section]``.

    Raises:
        MissingConfigError: the section does not exist
        MissingProviderKeyError: the section has no ``provider`` value
    """
    registry = registry or provider_registry
    raw = host.section(section)
    if raw is None:
        raise MissingConfigError(
            section,
            f"Please add a '{section}' section containing a 'provider' value and "
            f"(if the provider requires it) a 'connection' section to {host.name}'s configuration",
        ).with_context(host=host.name, section=section)

    if raw.get("provider") is None:
        raise MissingProviderKeyError(section, registry.list_providers())

    try:
        settings = SectionSettings.model_validate(thaw(raw))
    except PydanticValidationError as e:
        raise InvalidConfigError(section, thaw(raw), f"Invalid '{section}' section: {e}", cause=e) from e

    return get_database(settings.provider, host, settings.connection, expected_type, registry=registry)


def get_current_database(
    section: str = DEFAULT_SECTION,
    expected_type: type[H] = DatabaseHandle,  # type: ignore[assignment]
    *,
    registry: ProviderRegistry | None = None,
) -> H:
    """Resolve a handle from the bound host's configuration."""
    return get_section_database(current_host(), section, expected_type, registry=registry)


__all__ = [
    "DEFAULT_SECTION",
    "bind_host",
    "unbind_host",
    "host_scope",
    "current_host",
    "get_database",
    "get_section_database",
    "get_current_database",
]
