"""Tests for EntityScanner table discovery."""

from __future__ import annotations

import importlib
import zipfile
from unittest.mock import patch

import pytest

from sample_app.billing.invoices import Invoice
from sample_app.models import Audit, Log, User
from tablespine.config import HostContext, ScanSettings
from tablespine.errors import ScanIOError, UnknownTableError
from tablespine.scanner import EntityScanner


@pytest.fixture
def scanner() -> EntityScanner:
    return EntityScanner()


def _types(tables) -> list[type]:
    return [t.record_type for t in tables]


class TestAutoscan:
    def test_discovers_every_table_in_walk_order(self, scanner, sample_host) -> None:
        tables = scanner.scan(sample_host, ScanSettings(autoscan=True))
        assert _types(tables) == [Invoice, User, Log, Audit]

    def test_skips_modules_that_fail_to_import(self, scanner, sample_host) -> None:
        # sample_app.broken raises on import; the scan still succeeds
        tables = scanner.scan(sample_host, ScanSettings(autoscan=True))
        assert all(t.type_id.startswith("sample_app.") for t in tables)

    def test_package_prefix_filter(self, scanner, sample_host) -> None:
        tables = scanner.scan(sample_host, ScanSettings(autoscan=True, package="sample_app.billing"))
        assert _types(tables) == [Invoice]

    def test_package_prefix_skips_imports_outside_it(self, scanner, sample_host) -> None:
        with patch("tablespine.scanner.importlib.import_module", wraps=importlib.import_module) as spy:
            scanner.scan(sample_host, ScanSettings(autoscan=True, package="sample_app.billing"))

        imported = [c.args[0] for c in spy.call_args_list]
        assert "sample_app.billing.invoices" in imported
        assert "sample_app.broken" not in imported
        assert "sample_app.models" not in imported

    def test_re_exports_are_not_duplicated(self, scanner, sample_host) -> None:
        # sample_app/__init__ re-exports User
        tables = scanner.scan(sample_host, ScanSettings(autoscan=True))
        assert _types(tables).count(User) == 1

    def test_custom_predicate(self, sample_host) -> None:
        scanner = EntityScanner(predicate=lambda obj: obj is Log)
        assert _types(scanner.scan(sample_host, ScanSettings(autoscan=True))) == [Log]

    def test_host_without_code_root(self, scanner) -> None:
        host = HostContext(name="rootless")
        with pytest.raises(ScanIOError, match="no code root"):
            scanner.scan(host, ScanSettings(autoscan=True))

    def test_code_root_not_importable(self, scanner) -> None:
        host = HostContext(name="ghost", package="no_such_package_anywhere")
        with pytest.raises(ScanIOError, match="Cannot locate code root"):
            scanner.scan(host, ScanSettings(autoscan=True))

    @pytest.mark.parametrize(
        "failure",
        [OSError("disk gone"), zipfile.BadZipFile("truncated archive")],
    )
    def test_enumeration_failure(self, scanner, sample_host, failure) -> None:
        with patch("tablespine.scanner.pkgutil.iter_modules", side_effect=failure):
            with pytest.raises(ScanIOError, match="Failed to enumerate") as exc_info:
                scanner.scan(sample_host, ScanSettings(autoscan=True))
        assert exc_info.value.cause is failure


class TestExplicit:
    def test_resolves_in_configuration_order(self, scanner, sample_host) -> None:
        settings = ScanSettings(tables=["sample_app.models.Log", "sample_app.models.User"])
        assert _types(scanner.scan(sample_host, settings)) == [Log, User]

    def test_empty_list(self, scanner, sample_host) -> None:
        assert scanner.scan(sample_host, ScanSettings(tables=[])) == ()

    def test_alias_is_deduplicated(self, scanner, sample_host) -> None:
        settings = ScanSettings(tables=["sample_app.models.User", "sample_app.models.Member"])
        assert _types(scanner.scan(sample_host, settings)) == [User]

    def test_does_not_need_a_code_root(self, scanner) -> None:
        host = HostContext(name="rootless")
        settings = ScanSettings(tables=["sample_app.billing.invoices.Invoice"])
        assert _types(scanner.scan(host, settings)) == [Invoice]

    @pytest.mark.parametrize(
        "name,reason",
        [
            ("sample_app.models.Missing", "no attribute path Missing"),
            ("sample_app.nowhere.User", "no attribute path nowhere.User"),
            ("sample_app.models.NotATable", "not a table type"),
            ("sample_app.broken.Thing", "import failed"),
            ("User", "fully-qualified"),
        ],
    )
    def test_unknown_table(self, scanner, sample_host, name, reason) -> None:
        settings = ScanSettings(tables=["sample_app.models.User", name])
        with pytest.raises(UnknownTableError, match=reason) as exc_info:
            scanner.scan(sample_host, settings)
        assert exc_info.value.table_name == name
