"""Database providers -- named factories that turn configuration into handles.

Architecture::

    Provider (base.py)               Protocol: get(host, configuration) -> handle
        |-- MapProvider              in-memory map, no schema needed
        |-- SQLiteProvider           embedded file store
        |-- PostgreSQLProvider       networked relational store
        |-- MySQLProvider            networked relational store
    FactoryProvider (base.py)        wraps a plain callable

    ProviderRegistry (registry.py)   name -> Provider, thread-safe
"""

from .base import Configuration, FactoryProvider, Provider, parse_configuration
from .builtin import MapProvider, MySQLProvider, PostgreSQLProvider, SQLiteProvider
from .registry import (
    ProviderRegistry,
    has_provider,
    provider_registry,
    register_provider,
    unregister_provider,
)

__all__ = [
    "Configuration",
    "Provider",
    "FactoryProvider",
    "parse_configuration",
    "MapProvider",
    "SQLiteProvider",
    "PostgreSQLProvider",
    "MySQLProvider",
    "ProviderRegistry",
    "provider_registry",
    "register_provider",
    "unregister_provider",
    "has_provider",
]
