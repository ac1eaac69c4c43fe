"""
Tests for observability — logging setup and the operation log.
"""

import logging
from pathlib import Path

import pytest

from kaspa_aio.core.observability.logging_config import (
    OPERATION_LOGGERS,
    OperationLogHandler,
    _parse_level,
    attach_operation_log,
    detach_operation_log,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    detach_operation_log()
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _operation_handlers() -> list[logging.Handler]:
    return [
        h for name in OPERATION_LOGGERS
        for h in logging.getLogger(name).handlers
        if isinstance(h, OperationLogHandler)
    ]


class TestParseLevel:
    def test_names(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("ERROR") == logging.ERROR

    def test_fallback(self):
        assert _parse_level(None) == logging.WARNING
        assert _parse_level("chatty") == logging.WARNING


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.INFO

    def test_warning_format_has_level_name(self):
        setup_logging("WARNING")
        record = logging.LogRecord("kaspa_aio.x", logging.WARNING, __file__, 1, "backup failed", None, None)
        assert logging.getLogger().handlers[0].format(record) == "WARNING: backup failed"

    def test_replaces_handlers(self):
        setup_logging("INFO")
        setup_logging("WARNING")
        assert len(logging.getLogger().handlers) == 1

    def test_file_handler_lower_level(self, tmp_path: Path):
        log_file = tmp_path / "kaspa-aio.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("kaspa_aio.test").debug("only in the file")
        for handler in root.handlers:
            handler.flush()
        assert "only in the file" in log_file.read_text()


class TestOperationLog:
    """Tests for attach_operation_log / detach_operation_log."""

    def test_workflow_info_reaches_file_at_warning_console(self, tmp_path: Path):
        setup_logging("WARNING")
        path = tmp_path / ".kaspa-aio" / "operations.log"
        handler = attach_operation_log(path)

        logging.getLogger("kaspa_aio.core.services.profile_removal").info("Removed kasia-app")
        logging.getLogger("kaspa_aio.adapters.docker").info("Removed service kasia-app")
        handler.flush()

        text = path.read_text()
        assert "Removed kasia-app" in text
        assert "kaspa_aio.adapters.docker" in text

    def test_other_loggers_stay_out(self, tmp_path: Path):
        setup_logging("WARNING")
        path = tmp_path / "operations.log"
        handler = attach_operation_log(path)

        logging.getLogger("kaspa_aio.core.services.catalog").info("Saved custom template 'x'")
        logging.getLogger("kaspa_aio.core.services.profile_addition").debug("step detail")
        handler.flush()
        assert path.read_text() == ""

    def test_attach_replaces_previous(self, tmp_path: Path):
        attach_operation_log(tmp_path / "a.log")
        attach_operation_log(tmp_path / "b.log")
        assert {h.baseFilename for h in _operation_handlers()} == {str(tmp_path / "b.log")}

    def test_detach(self, tmp_path: Path):
        attach_operation_log(tmp_path / "operations.log")
        detach_operation_log()
        assert _operation_handlers() == []
        assert logging.getLogger("kaspa_aio.adapters").level == logging.NOTSET
