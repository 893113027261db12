"""
Shared pytest fixtures and configuration for tablespine tests.

This module provides:
- Registry cleanup fixtures for test isolation
- A sample host bound to the ``sample_app`` fixture package
- Helpers for writing YAML host configurations

Usage:
    Fixtures are auto-discovered by pytest. Simply use them as function
    arguments (pytest injects them automatically).
"""

import sys
from pathlib import Path
from typing import Any, Generator

import pytest
import yaml

# Ensure tablespine and the sample application are importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent / "fixtures"))

from tablespine.config import HostContext
from tablespine.providers import provider_registry
from tablespine.settings import reset_settings


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark all tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Registry Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_provider_registry() -> Generator[None, None, None]:
    """Restore the global provider registry after every test."""
    snapshot = provider_registry.snapshot()
    yield
    provider_registry.restore(snapshot)


@pytest.fixture(autouse=True)
def clean_settings() -> Generator[None, None, None]:
    """Drop cached settings so environment changes never leak between tests."""
    reset_settings()
    yield
    reset_settings()


# =============================================================================
# Host Fixtures
# =============================================================================


@pytest.fixture
def sample_host() -> HostContext:
    """Host whose code root is the ``sample_app`` fixture package."""
    return HostContext(name="sample", config={}, package="sample_app")


@pytest.fixture
def write_config(tmp_path: Path):
    """Write a host configuration mapping to a YAML file and return its path."""

    def _write(name: str, values: dict[str, Any]) -> Path:
        path = tmp_path / f"{name}.yml"
        path.write_text(yaml.safe_dump(values), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sqlite_section(tmp_path: Path):
    """Build a ``database`` section for a SQLite file under ``tmp_path``."""

    def _section(filename: str, tables: list[str]) -> dict[str, Any]:
        return {
            "provider": "sqlite",
            "connection": {"file": str(tmp_path / filename), "tables": tables},
        }

    return _section
