"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from core.log import APP_LOGGERS, configure_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None, None, None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    levels = {name: logging.getLogger(name).level for name in APP_LOGGERS}
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        for name in APP_LOGGERS:
            assert logging.getLogger(name).level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False)
        assert logging.getLogger("core").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("core.services.executor")
        log.debug("request_failed", status=401, attempt=0)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "request_failed"
        assert parsed["status"] == 401
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "core.services.executor"
        assert "timestamp" in parsed

    def test_httpx_kept_quiet(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("httpx").level == logging.WARNING
