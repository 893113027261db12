"""Provider contract.

A provider is a named factory: given the requesting host and its
connection configuration it returns a ready :class:`DatabaseHandle`, or
raises.  It never returns ``None``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tablespine.config import HostContext, thaw
from tablespine.errors import BackendConstructionError
from tablespine.handle import DatabaseHandle

M = TypeVar("M", bound=BaseModel)

Configuration = Mapping[str, Any]


@runtime_checkable
class Provider(Protocol):
    """Builds a database handle from configuration."""

    def get(self, host: HostContext, configuration: Configuration | None) -> DatabaseHandle:
        """Return a connected handle; raise ``BackendConstructionError`` on failure."""
        ...


class FactoryProvider:
    """Adapts a plain ``(host, configuration) -> handle`` callable to :class:`Provider`."""

    def __init__(self, factory: Callable[[HostContext, Configuration | None], DatabaseHandle]):
        self._factory = factory

    def get(self, host: HostContext, configuration: Configuration | None) -> DatabaseHandle:
        return self._factory(host, configuration)

    def __repr__(self) -> str:
        name = getattr(self._factory, "__qualname__", repr(self._factory))
        return f"FactoryProvider({name})"


def parse_configuration(model: type[M], configuration: Configuration | None, *, provider: str) -> M:
    """Validate a connection mapping into ``model``.

    Raises:
        BackendConstructionError: the mapping is absent or does not validate
    """
    if configuration is None:
        raise BackendConstructionError(
            f"Provider '{provider}' requires a 'connection' configuration"
        ).with_context(provider=provider)
    try:
        return model.model_validate(thaw(configuration))
    except PydanticValidationError as e:
        raise BackendConstructionError(
            f"Invalid '{provider}' connection configuration: {e}", cause=e
        ).with_context(provider=provider) from e


__all__ = [
    "Configuration",
    "Provider",
    "FactoryProvider",
    "parse_configuration",
]
