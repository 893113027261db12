"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from tablespine.logging import LogContext, bind_context, configure_logging, get_logger, unbind_context


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class TestConfigureLogging:
    def test_json_output(self, caplog) -> None:
        configure_logging(level="INFO", json_format=True, service="tablespine-test")

        with caplog.at_level(logging.INFO, logger="tests.logging.json"):
            get_logger("tests.logging.json").info("dump_started", tables=2)

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["event"] == "dump_started"
        assert payload["tables"] == 2
        assert payload["service.name"] == "tablespine-test"
        assert payload["log.level"] == "info"
        assert "@timestamp" in payload

    def test_level_filtering(self, caplog) -> None:
        configure_logging(level="WARNING", json_format=True)

        with caplog.at_level(logging.WARNING, logger="tests.logging.level"):
            logger = get_logger("tests.logging.level")
            logger.info("dropped")
            logger.warning("kept")

        assert [json.loads(r.getMessage())["event"] for r in caplog.records] == ["kept"]


class TestContext:
    def test_log_context_binds_and_unbinds(self) -> None:
        with LogContext(dump_id="abc123"):
            assert structlog.contextvars.get_contextvars()["dump_id"] == "abc123"
        assert "dump_id" not in structlog.contextvars.get_contextvars()

    def test_bind_and_unbind(self) -> None:
        bind_context(provider="sqlite")
        assert structlog.contextvars.get_contextvars() == {"provider": "sqlite"}
        unbind_context("provider")
        assert structlog.contextvars.get_contextvars() == {}

    def test_context_reaches_output(self, caplog) -> None:
        configure_logging(level="INFO", json_format=True)
        with caplog.at_level(logging.INFO, logger="tests.logging.ctx"):
            with LogContext(dump_id="d1"):
                get_logger("tests.logging.ctx").info("dump_table_started")
        assert json.loads(caplog.records[-1].getMessage())["dump_id"] == "d1"
