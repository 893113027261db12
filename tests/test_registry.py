"""Tests for ProviderRegistry registration and resolution."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from tablespine.backends import MapDatabase, RelationalDatabase
from tablespine.config import HostContext
from tablespine.errors import (
    HandleTypeMismatchError,
    ProviderNotFoundError,
    ProviderReturnedInvalidError,
)
from tablespine.providers import (
    FactoryProvider,
    MapProvider,
    Provider,
    ProviderRegistry,
    has_provider,
    provider_registry,
    register_provider,
    unregister_provider,
)


@pytest.fixture
def registry() -> ProviderRegistry:
    return ProviderRegistry()


@pytest.fixture
def host() -> HostContext:
    return HostContext(name="registry-test")


class TestDefaults:
    def test_builtins_registered(self, registry) -> None:
        assert registry.list_providers() == ["map", "mysql", "postgres", "postgresql", "sqlite"]

    def test_postgres_alias_shares_instance(self, registry) -> None:
        assert registry.get("postgres") is registry.get("postgresql")

    def test_empty_registry(self) -> None:
        assert ProviderRegistry(defaults=False).list_providers() == []


class TestRegistration:
    def test_register_provider_object(self, registry, host) -> None:
        registry.register("memory", MapProvider())
        assert registry.has("memory")
        assert isinstance(registry.resolve("memory", host, None), MapDatabase)

    def test_plain_callable_is_wrapped(self, registry) -> None:
        registry.register("custom", lambda host, configuration: MapDatabase())
        provider = registry.get("custom")
        assert isinstance(provider, FactoryProvider)
        assert isinstance(provider, Provider)

    def test_register_replaces(self, registry, host) -> None:
        first, second = MapDatabase(), MapDatabase()
        registry.register("custom", lambda h, c: first)
        registry.register("custom", lambda h, c: second)
        assert registry.resolve("custom", host, None) is second

    def test_unregister_returns_provider(self, registry) -> None:
        provider = registry.get("map")
        assert registry.unregister("map") is provider
        assert not registry.has("map")

    def test_resolve_after_unregister(self, registry, host) -> None:
        registry.unregister("map")
        with pytest.raises(ProviderNotFoundError):
            registry.resolve("map", host, None)

    def test_unregister_unknown_returns_none(self, registry) -> None:
        assert registry.unregister("nothing") is None

    def test_unknown_provider(self, registry) -> None:
        with pytest.raises(ProviderNotFoundError) as exc_info:
            registry.get("mongodb")
        assert exc_info.value.provider_name == "mongodb"

    def test_snapshot_and_restore(self, registry) -> None:
        snapshot = registry.snapshot()
        registry.register("temp", MapProvider())
        registry.unregister("map")
        registry.restore(snapshot)
        assert registry.has("map")
        assert not registry.has("temp")


class TestResolve:
    def test_passes_host_and_configuration(self, registry, host) -> None:
        calls = []

        def factory(h, c):
            calls.append((h, c))
            return MapDatabase()

        registry.register("spy", factory)
        registry.resolve("spy", host, {"answer": 42})
        assert calls == [(host, {"answer": 42})]

    def test_provider_objects_are_used_as_is(self, registry, host) -> None:
        provider = MagicMock()
        provider.get.return_value = MapDatabase()
        registry.register("mocked", provider)
        assert registry.get("mocked") is provider
        registry.resolve("mocked", host, None)
        provider.get.assert_called_once_with(host, None)

    def test_provider_returning_none(self, registry, host) -> None:
        registry.register("null", lambda h, c: None)
        with pytest.raises(ProviderReturnedInvalidError, match="returned null"):
            registry.resolve("null", host, None)

    def test_provider_returning_non_handle(self, registry, host) -> None:
        registry.register("weird", lambda h, c: {"not": "a handle"})
        with pytest.raises(ProviderReturnedInvalidError, match="returned a dict"):
            registry.resolve("weird", host, None)

    def test_type_mismatch_closes_handle(self, registry, host) -> None:
        database = MapDatabase()
        registry.register("custom", lambda h, c: database)

        with pytest.raises(HandleTypeMismatchError) as exc_info:
            registry.resolve("custom", host, None, RelationalDatabase)

        assert exc_info.value.expected is RelationalDatabase
        assert exc_info.value.actual is MapDatabase
        assert database.closed

    def test_expected_type_satisfied(self, registry, host) -> None:
        assert isinstance(registry.resolve("map", host, None, MapDatabase), MapDatabase)


class TestGlobalRegistry:
    def test_module_helpers(self) -> None:
        register_provider("scratch", lambda h, c: MapDatabase())
        assert has_provider("scratch")
        assert "scratch" in provider_registry.list_providers()
        assert unregister_provider("scratch") is not None
        assert not has_provider("scratch")


@pytest.mark.slow
class TestConcurrency:
    def test_concurrent_register_and_resolve(self, registry, host) -> None:
        errors: list[BaseException] = []
        barrier = threading.Barrier(8)

        def worker(n: int) -> None:
            try:
                barrier.wait()
                for i in range(50):
                    name = f"worker-{n}-{i}"
                    registry.register(name, lambda h, c: MapDatabase())
                    registry.resolve(name, host, None).close()
                    registry.resolve("map", host, None).close()
                    registry.list_providers()
                    assert registry.unregister(name) is not None
            except BaseException as e:  # pragma: no cover - reported below
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert registry.list_providers() == ["map", "mysql", "postgres", "postgresql", "sqlite"]
