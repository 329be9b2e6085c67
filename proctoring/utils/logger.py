"""
Logging utilities for the proctoring monitor.
"""

import functools
import logging
import sys
import time
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import LoggingConfig, config

ROOT_LOGGER_NAME = "proctoring"

DETAILED_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
SIMPLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def _make_file_handler(logging_config: LoggingConfig, log_file=None) -> logging.FileHandler:
    """Timestamped file handler in the configured log directory."""
    if log_file is None:
        logs_dir = Path(logging_config.log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = logs_dir / f"proctoring_{timestamp}.log"

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(getattr(logging, logging_config.log_level.upper(), logging.DEBUG))
    file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
    return file_handler


class ProctoringLogger:
    """Diagnostic logger for the proctoring monitor."""

    def __init__(self, name: str = ROOT_LOGGER_NAME, log_file: Optional[str] = None):
        """
        Initialize the logger.

        Module loggers under ``proctoring.`` carry no handlers of their own
        and propagate to the package logger, so reconfiguring the package
        logger applies everywhere.
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)

        if name.startswith(ROOT_LOGGER_NAME + ".") and log_file is None:
            ProctoringLogger(ROOT_LOGGER_NAME)
            return

        self.logger.propagate = False

        # Prevent duplicate handlers
        if self.logger.handlers:
            return

        # Console handler - errors only
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.ERROR)
        console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
        self.logger.addHandler(console_handler)

        if config.logging.enable_file_logging or log_file is not None:
            self.logger.addHandler(_make_file_handler(config.logging, log_file))

    def debug(self, message: str) -> None:
        """Log debug message."""
        self.logger.debug(message)

    def info(self, message: str) -> None:
        """Log info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log error message."""
        self.logger.error(message)

    def log_calibration(self, yaw: float, pitch: float, gaze: float) -> None:
        """Log the frozen calibration baseline."""
        self.info(f"Calibration complete - Baseline yaw: {yaw:.4f}, pitch: {pitch:.4f}, gaze: {gaze:.4f}")

    def log_face_count(self, previous: int, current: int) -> None:
        """Log a change in detected face count."""
        self.debug(f"Face count changed: {previous} -> {current}")

    def log_recognition(self, distance: float, threshold: float) -> None:
        """Log a face recognition comparison."""
        self.debug(f"Face recognition distance: {distance:.3f}, threshold: {threshold}")

    def log_error_with_context(self, error: Exception, context: str) -> None:
        """Log error with additional context."""
        self.error(f"Error in {context}: {error}")
        self.debug(f"Traceback: {''.join(traceback.format_exception(type(error), error, error.__traceback__))}")


# Global logger instance
logger = ProctoringLogger()


def get_logger(name: str = ROOT_LOGGER_NAME) -> ProctoringLogger:
    """Get a logger instance."""
    return ProctoringLogger(name)


def log_performance_metrics(func):
    """Decorator to log processing time of a call."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            return func(*args, **kwargs)
        finally:
            processing_time = (time.time() - start_time) * 1000
            logger.debug(f"{func.__name__} took {processing_time:.2f}ms")
    return wrapper


def configure_logging(logging_config: LoggingConfig) -> Optional[Path]:
    """
    Apply a logging section to the package logger, replacing any file handler.

    Returns:
        Path of the new log file, or None when file logging is disabled
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()

    if not logging_config.enable_file_logging:
        return None

    file_handler = _make_file_handler(logging_config)
    root.addHandler(file_handler)
    return Path(file_handler.baseFilename)
