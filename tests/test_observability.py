"""
Tests for CLI logging setup.
"""

import logging
import sys

import pytest

from node_doctor.core.observability.logging_config import (
    configure_cli_logging,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestResolveLevel:
    def test_flags_outrank_environment(self):
        env = {"NODE_DOCTOR_LOG_LEVEL": "ERROR"}
        assert resolve_level(debug=True, verbose=True, environ=env) == "DEBUG"
        assert resolve_level(verbose=True, quiet=True, environ=env) == "INFO"
        assert resolve_level(quiet=True, environ={}) == "ERROR"

    def test_environment_then_default(self):
        assert resolve_level(environ={"NODE_DOCTOR_LOG_LEVEL": "info"}) == "info"
        assert resolve_level(environ={"NODE_DOCTOR_LOG_LEVEL": ""}) == "WARNING"
        assert resolve_level(environ={}) == "WARNING"


class TestSetupLogging:
    def test_console_on_stderr(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert root.handlers[0].level == logging.INFO
        assert root.handlers[0].stream is sys.stderr

    def test_unknown_level_falls_back_to_warning(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler_lowers_root_level(self, tmp_path):
        log_file = tmp_path / "logs" / "doctor.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("node_doctor.test").debug("probe detail")
        for handler in root.handlers:
            handler.flush()
        assert "probe detail" in log_file.read_text()

    def test_quiet_third_party(self):
        setup_logging("INFO")
        assert logging.getLogger("urllib3").level == logging.WARNING


class TestConfigureCliLogging:
    def test_reads_file_settings_from_environment(self, tmp_path):
        log_file = tmp_path / "nd.log"
        configure_cli_logging(environ={
            "NODE_DOCTOR_LOG_LEVEL": "ERROR",
            "NODE_DOCTOR_LOG_FILE": str(log_file),
            "NODE_DOCTOR_LOG_FILE_LEVEL": "INFO",
        })

        root = logging.getLogger()
        assert root.handlers[0].level == logging.ERROR
        assert root.handlers[1].level == logging.INFO
        assert root.level == logging.INFO

    def test_debug_flag(self):
        configure_cli_logging(debug=True, environ={})
        assert logging.getLogger().level == logging.DEBUG
