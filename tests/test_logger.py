"""
Tests for logger functionality.
"""

import pytest
from pathlib import Path
from taskids.logger import StructuredLogger, get_logger, reset_logger


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["records_updated"] == 0

    def test_log_file_receives_context(self, tmp_path):
        logger = StructuredLogger(name="test-file", log_dir=tmp_path, enable_console=False)

        logger.debug("Updated task", owner="u1", key="k1", new="PEÇA")

        [log_file] = list(tmp_path.glob("taskids_*.log"))
        text = log_file.read_text(encoding="utf-8")
        assert "Updated task | Context:" in text
        assert '"owner": "u1"' in text

    def test_log_methods(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)

        # Should not raise exceptions
        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

    def test_console_only(self, capsys):
        logger = StructuredLogger(name="test-console", enable_file=False)
        logger.info("hello", count=2)
        assert "hello" in capsys.readouterr().out

    def test_metrics_tracking(self):
        logger = StructuredLogger(name="test", enable_file=False, enable_console=False)

        logger.record_update("u1")
        logger.record_update("u1")
        logger.record_update("u2")
        logger.record_owner_processed()
        logger.record_write_failure("HTTPError")
        logger.record_owner_failure("ConnectionError")

        metrics = logger.get_metrics()
        assert metrics["records_updated"] == 3
        assert metrics["updates_by_owner"] == {"u1": 2, "u2": 1}
        assert metrics["owners_processed"] == 1
        assert metrics["write_failures"] == 1
        assert metrics["owner_read_failures"] == 1
        assert metrics["errors_by_type"] == {"HTTPError": 1, "ConnectionError": 1}

    def test_get_metrics_returns_copy(self):
        logger = StructuredLogger(name="test", enable_file=False, enable_console=False)
        metrics = logger.get_metrics()
        metrics["updates_by_owner"]["u1"] = 99
        assert logger.metrics["updates_by_owner"] == {}

    def test_reset_metrics(self):
        logger = StructuredLogger(name="test", enable_file=False, enable_console=False)
        logger.record_update("u1")
        logger.reset_metrics()
        assert logger.metrics["records_updated"] == 0

    def test_metrics_summary(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_write_failure("HTTPError")
        logger.log_metrics_summary()


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        reset_logger()
        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()
        assert logger1 is logger2
        reset_logger()

    def test_reset_logger(self, tmp_path):
        reset_logger()
        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        reset_logger()
        logger2 = get_logger(log_dir=tmp_path, enable_console=False)
        assert logger1 is not logger2
        reset_logger()
