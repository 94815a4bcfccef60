"""
Structured logging system for taskids.

Provides centralized logging with console and file outputs, log levels,
and metrics tracking for monitoring migration passes.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for the current migration pass.
    """

    def __init__(
        self,
        name: str = "taskids",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if enable_file else getattr(logging, level.upper()))
        self.logger.handlers.clear()
        self.logger.propagate = False

        self.reset_metrics()

        if enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"taskids_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str, ensure_ascii=False)}"
        self.logger.log(level, message, stacklevel=3)

    # Metric tracking methods

    def reset_metrics(self):
        self.metrics = {
            "owners_processed": 0,
            "owner_read_failures": 0,
            "records_updated": 0,
            "write_failures": 0,
            "errors_by_type": {},
            "updates_by_owner": {},
        }

    def record_owner_processed(self):
        self.metrics["owners_processed"] += 1

    def record_owner_failure(self, error_type: str):
        self.metrics["owner_read_failures"] += 1
        self._count_error(error_type)

    def record_update(self, owner: str):
        """Record an idOS update (applied or planned) for an owner."""
        self.metrics["records_updated"] += 1
        by_owner = self.metrics["updates_by_owner"]
        by_owner[owner] = by_owner.get(owner, 0) + 1

    def record_write_failure(self, error_type: str):
        self.metrics["write_failures"] += 1
        self._count_error(error_type)

    def _count_error(self, error_type: str):
        errors = self.metrics["errors_by_type"]
        errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return a copy of current metrics."""
        metrics_copy = dict(self.metrics)
        metrics_copy["errors_by_type"] = dict(self.metrics["errors_by_type"])
        metrics_copy["updates_by_owner"] = dict(self.metrics["updates_by_owner"])
        return metrics_copy

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Migration Pass Metrics ===")
        self.info(f"Owners processed: {metrics['owners_processed']}")
        self.info(f"Owner read failures: {metrics['owner_read_failures']}")
        self.info(f"Records updated: {metrics['records_updated']}")
        self.info(f"Write failures: {metrics['write_failures']}")

        if metrics["updates_by_owner"]:
            self.debug("Updates by owner:")
            for owner, count in metrics["updates_by_owner"].items():
                self.debug(f"  {owner}: {count}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "taskids",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
