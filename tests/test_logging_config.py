# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import tempfile
import unittest
from pathlib import Path

from src.config.logging_config import ROOT_LOGGER_NAME, setup_logging


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        """Start each test with an unconfigured storefront logger."""
        self._tmp = tempfile.TemporaryDirectory()
        self.logs_dir = Path(self._tmp.name) / "logs"
        self.root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        self._clear_handlers()

    def tearDown(self) -> None:
        self._clear_handlers()
        self._tmp.cleanup()

    def _clear_handlers(self) -> None:
        for handler in list(self.root_logger.handlers):
            handler.close()
            self.root_logger.removeHandler(handler)

    def test_setup_creates_log_file(self) -> None:
        """setup_logging returns a path that exists on disk."""
        log_path = setup_logging(self.logs_dir)
        self.assertTrue(log_path.exists())

    def test_log_file_naming_convention(self) -> None:
        """Log file name matches run_YYYYMMDD_HHMMSS.log format."""
        log_path = setup_logging(self.logs_dir)
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_log_file_inside_logs_dir(self) -> None:
        log_path = setup_logging(self.logs_dir)
        self.assertEqual(log_path.parent, self.logs_dir)

    def test_file_handler_level_debug(self) -> None:
        """File handler should be set to DEBUG level."""
        setup_logging(self.logs_dir)
        file_handlers = [
            h for h in self.root_logger.handlers
            if isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(file_handlers), 1)
        self.assertEqual(file_handlers[0].level, logging.DEBUG)

    def test_console_handler_level_warning(self) -> None:
        """Console handler defaults to WARNING level."""
        setup_logging(self.logs_dir)
        stream_handlers = [
            h for h in self.root_logger.handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(stream_handlers), 1)
        self.assertEqual(stream_handlers[0].level, logging.WARNING)

    def test_repeated_calls_no_duplicate_handlers(self) -> None:
        """Calling setup_logging twice does not duplicate handlers."""
        setup_logging(self.logs_dir)
        count_before = len(self.root_logger.handlers)
        setup_logging(self.logs_dir)
        self.assertEqual(len(self.root_logger.handlers), count_before)

    def test_child_loggers_reach_file(self) -> None:
        """Messages from storefront.* children land in the session log."""
        log_path = setup_logging(self.logs_dir)
        logging.getLogger("storefront.listing").debug("hello listing")
        for handler in self.root_logger.handlers:
            handler.flush()
        self.assertIn(
            "hello listing", log_path.read_text(encoding="utf-8")
        )


if __name__ == "__main__":
    unittest.main()
