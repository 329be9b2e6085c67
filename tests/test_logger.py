"""
Unit tests for the diagnostic logger.
"""

import logging
import tempfile
import unittest

from proctoring.utils.config import LoggingConfig
from proctoring.utils.logger import ROOT_LOGGER_NAME, configure_logging, get_logger, log_performance_metrics


class TestConfigureLogging(unittest.TestCase):
    """Test applying a logging section after startup."""

    def tearDown(self):
        configure_logging(LoggingConfig())

    def file_handlers(self):
        root = logging.getLogger(ROOT_LOGGER_NAME)
        return [h for h in root.handlers if isinstance(h, logging.FileHandler)]

    def test_disabled_by_default(self):
        self.assertIsNone(configure_logging(LoggingConfig()))
        self.assertEqual(self.file_handlers(), [])

    def test_module_loggers_reach_configured_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = configure_logging(LoggingConfig(enable_file_logging=True, log_dir=tmp, log_level="DEBUG"))
            get_logger("proctoring.core.calibration").info("Calibration complete - Baseline yaw: 0.0100")
            configure_logging(LoggingConfig())

            self.assertIn("Baseline yaw: 0.0100", path.read_text())

    def test_reconfigure_replaces_file_handler(self):
        with tempfile.TemporaryDirectory() as tmp:
            configure_logging(LoggingConfig(enable_file_logging=True, log_dir=tmp))
            configure_logging(LoggingConfig(enable_file_logging=True, log_dir=tmp, log_level="WARNING"))
            handlers = self.file_handlers()
            self.assertEqual(len(handlers), 1)
            self.assertEqual(handlers[0].level, logging.WARNING)
            configure_logging(LoggingConfig())


class TestPerformanceMetrics(unittest.TestCase):

    def test_decorator_returns_result(self):
        @log_performance_metrics
        def process_frame(value):
            return value * 2

        self.assertEqual(process_frame(21), 42)
        self.assertEqual(process_frame.__name__, "process_frame")


if __name__ == '__main__':
    unittest.main()
