"""
Structured logging for rorlink.

One process wide logger writes to the console and to a daily log file, and
keeps the metrics of a run: records loaded and rejected per source,
malformed links, downloads and matching step durations.
"""

import json
import logging
import os
import sys
import time
from collections import Counter
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=DATE_FORMAT))
    return handler


class StructuredLogger:
    """
    Logger with `key=value` style context and run metrics.

    Console output follows the configured level; the log file always
    receives DEBUG.
    """

    def __init__(
        self,
        name: str = "rorlink",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to a daily file in log_dir
            enable_console: Write logs to stdout
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(_level(level))
        self.logger.handlers.clear()
        self._console_handler: Optional[logging.Handler] = None
        self.metrics = self._empty_metrics()

        if enable_console:
            self._console_handler = _handler(logging.StreamHandler(sys.stdout), _level(level), CONSOLE_FORMAT)
            self.logger.addHandler(self._console_handler)

        if enable_file:
            log_dir = Path(log_dir) if log_dir is not None else Path("logs")
            log_dir.mkdir(parents=True, exist_ok=True)
            log_file = log_dir / f"rorlink_{datetime.now():%Y%m%d}.log"
            self.logger.addHandler(
                _handler(logging.FileHandler(log_file, encoding="utf-8"), logging.DEBUG, FILE_FORMAT)
            )

    @staticmethod
    def _empty_metrics() -> dict:
        return {
            "records_loaded": Counter(),
            "records_rejected": Counter(),
            "malformed_links": 0,
            "downloads_attempted": 0,
            "downloads_successful": 0,
            "downloads_failed": 0,
            "errors_by_type": Counter(),
            "step_durations_ms": {},
        }

    def set_level(self, level: str):
        """Change the logger and console level; the file keeps DEBUG."""
        self.logger.setLevel(_level(level))
        if self._console_handler is not None:
            self._console_handler.setLevel(_level(level))

    def debug(self, message: str, **kwargs):
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Run metrics

    def record_loaded(self, source: str, count: int = 1):
        """Records accepted from a source (federation, ror, wikidata)."""
        self.metrics["records_loaded"][source] += count

    def record_rejected(self, source: str, count: int = 1):
        """Records skipped because they failed validation."""
        self.metrics["records_rejected"][source] += count

    def record_malformed_links(self, count: int = 1):
        self.metrics["malformed_links"] += count

    def record_download_attempt(self):
        self.metrics["downloads_attempted"] += 1

    def record_download_success(self):
        self.metrics["downloads_successful"] += 1

    def record_download_failure(self, error_type: str):
        self.metrics["downloads_failed"] += 1
        self.metrics["errors_by_type"][error_type] += 1

    def record_step_duration(self, step: str, duration_ms: float):
        self.metrics["step_durations_ms"][step] = round(duration_ms, 1)

    @contextmanager
    def timed(self, step: str):
        """Record the wall time of the enclosed block as a step duration."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record_step_duration(step, (time.perf_counter() - start) * 1000)

    def get_metrics(self) -> dict:
        """Plain dict copy of the current metrics."""
        return json.loads(json.dumps(self.metrics))

    def log_metrics_summary(self):
        metrics = self.get_metrics()

        self.info("=== Run Metrics ===")
        for source, count in sorted(metrics["records_loaded"].items()):
            rejected = metrics["records_rejected"].get(source, 0)
            self.info(f"  {source}: {count} loaded, {rejected} rejected")
        if metrics["malformed_links"]:
            self.info(f"Malformed links skipped: {metrics['malformed_links']}")

        if metrics["downloads_attempted"]:
            self.info(
                f"Downloads: {metrics['downloads_successful']}/{metrics['downloads_attempted']} successful"
            )

        if metrics["step_durations_ms"]:
            self.info("Step Durations:")
            for step, duration in metrics["step_durations_ms"].items():
                self.info(f"  {step}: {duration}ms")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in sorted(metrics["errors_by_type"].items()):
                self.info(f"  {error_type}: {count}")


_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "rorlink",
    level: Optional[str] = None,
    **kwargs
) -> StructuredLogger:
    """
    Get or create the process wide logger.

    On first use, level and log directory fall back to RORLINK_LOG_LEVEL
    (default INFO) and RORLINK_LOG_DIR.
    """
    global _global_logger

    if _global_logger is None:
        if level is None:
            level = os.getenv("RORLINK_LOG_LEVEL", "INFO")
        if "log_dir" not in kwargs and os.getenv("RORLINK_LOG_DIR"):
            kwargs["log_dir"] = Path(os.environ["RORLINK_LOG_DIR"])
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Forget the process wide logger so the next get_logger builds a new one."""
    global _global_logger
    _global_logger = None
