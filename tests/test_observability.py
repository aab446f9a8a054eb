"""
Tests for logging setup.
"""

import logging
from pathlib import Path

import pytest

from parserctl.core.observability.logging_config import (
    LogSettings,
    _parse_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    asyncio_level = logging.getLogger("asyncio").level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("asyncio").setLevel(asyncio_level)


class TestLogSettings:
    """Tests for resolving CLI flags and environment into levels."""

    def test_default_is_warning(self):
        settings = LogSettings.resolve(env={})
        assert settings.console_level == logging.WARNING
        assert settings.log_file is None

    def test_env_level(self):
        settings = LogSettings.resolve(env={"PARSERCTL_LOG_LEVEL": "info"})
        assert settings.console_level == logging.INFO

    def test_flags_beat_env(self):
        env = {"PARSERCTL_LOG_LEVEL": "DEBUG"}
        assert LogSettings.resolve(quiet=True, env=env).console_level == logging.ERROR
        assert LogSettings.resolve(verbose=True, env=env).console_level == logging.INFO

    def test_debug_beats_other_flags(self):
        settings = LogSettings.resolve(verbose=True, quiet=True, debug=True, env={})
        assert settings.console_level == logging.DEBUG
        assert settings.debug

    def test_file_level_defaults_to_console_level(self):
        settings = LogSettings.resolve(verbose=True, env={"PARSERCTL_LOG_FILE": "x.log"})
        assert settings.log_file == "x.log"
        assert settings.file_level == logging.INFO

    def test_reads_process_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PARSERCTL_LOG_LEVEL", "ERROR")
        assert LogSettings.resolve().console_level == logging.ERROR


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_console_level(self):
        setup_logging(LogSettings(console_level=logging.INFO))
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_file_handler_lowers_root_level(self, tmp_path: Path):
        log_file = tmp_path / "parserctl.log"
        setup_logging(LogSettings.resolve(env={
            "PARSERCTL_LOG_FILE": str(log_file),
            "PARSERCTL_LOG_FILE_LEVEL": "DEBUG",
        }))
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("parserctl.test").debug("to the file only")
        for handler in root.handlers:
            handler.flush()
        assert "to the file only" in log_file.read_text()

    def test_asyncio_quieted_unless_debug(self):
        setup_logging(LogSettings(console_level=logging.INFO))
        assert logging.getLogger("asyncio").level == logging.WARNING

        setup_logging(LogSettings.resolve(debug=True, env={}))
        assert logging.getLogger("asyncio").level == logging.NOTSET

    def test_parse_level(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("nonsense") == logging.WARNING
        assert _parse_level(None) == logging.WARNING
