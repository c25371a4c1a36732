"""
Tests for logging setup.
"""

import logging

from craterun.core.observability.logging_config import (
    LOG_LEVEL_ENV,
    resolve_level,
    setup_logging,
)


class TestResolveLevel:
    def test_default(self):
        assert resolve_level({}) == "WARNING"

    def test_env(self):
        assert resolve_level({LOG_LEVEL_ENV: "ERROR"}) == "ERROR"

    def test_verbose_over_env(self):
        assert resolve_level({LOG_LEVEL_ENV: "ERROR"}, verbose=True) == "INFO"

    def test_debug_over_verbose(self):
        assert resolve_level({}, verbose=True, debug=True) == "DEBUG"


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_unknown_level_falls_back_to_warning(self):
        setup_logging("LOUD")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "craterun.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("craterun.test").debug("hello file")
        for handler in root.handlers:
            handler.flush()
        assert "hello file" in log_file.read_text()

    def test_unwritable_file_falls_back_to_console(self, tmp_path, capsys):
        log_file = tmp_path / "missing-dir" / "craterun.log"
        setup_logging("WARNING", log_file=str(log_file))

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert not log_file.exists()
        err = capsys.readouterr().err
        assert err.count("cannot open log file") == 1
