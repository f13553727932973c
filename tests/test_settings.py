# tests/test_settings.py

"""Tests for the Settings configuration class."""

import unittest
from pathlib import Path

from src.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Verify Settings constants and registries."""

    def test_request_timeout_disabled_by_default(self) -> None:
        """No explicit timeout unless configured."""
        self.assertIsNone(Settings.REQUEST_TIMEOUT)

    def test_max_retries_is_positive(self) -> None:
        """MAX_RETRIES must be >= 1."""
        self.assertGreaterEqual(Settings.MAX_RETRIES, 1)

    def test_retry_status_codes_cover_rate_limit(self) -> None:
        self.assertIn(429, Settings.RETRY_STATUS_CODES)
        self.assertIn(503, Settings.RETRY_STATUS_CODES)
        self.assertNotIn(404, Settings.RETRY_STATUS_CODES)

    def test_page_size_and_window(self) -> None:
        self.assertEqual(Settings.PAGE_SIZE, 15)
        self.assertEqual(Settings.MAX_VISIBLE_PAGES, 5)

    def test_reference_currency_rate_is_one(self) -> None:
        """The reference currency converts 1:1 to itself."""
        self.assertEqual(
            Settings.FALLBACK_RATES[Settings.REFERENCE_CURRENCY], 1.0
        )

    def test_every_currency_has_fallback_rate(self) -> None:
        """Each registered currency has a positive fallback rate."""
        for entry in Settings.AVAILABLE_CURRENCIES:
            with self.subTest(code=entry["code"]):
                self.assertIn("name", entry)
                self.assertIn("symbol", entry)
                self.assertGreater(
                    Settings.FALLBACK_RATES[entry["code"]], 0
                )

    def test_currency_codes_are_unique(self) -> None:
        codes = [c["code"] for c in Settings.AVAILABLE_CURRENCIES]
        self.assertEqual(len(codes), len(set(codes)))
        self.assertEqual(len(codes), 11)

    def test_category_ids_are_unique(self) -> None:
        """No duplicate category ids."""
        ids = [c["id"] for c in Settings.AVAILABLE_CATEGORIES]
        self.assertEqual(len(ids), len(set(ids)))

    def test_path_constants_are_paths(self) -> None:
        """Path-typed settings are Path instances."""
        self.assertIsInstance(Settings.BASE_DIR, Path)
        self.assertIsInstance(Settings.STATE_DIR, Path)
        self.assertIsInstance(Settings.LOGS_DIR, Path)

    def test_impersonate_browser_is_string(self) -> None:
        """IMPERSONATE_BROWSER must be a non-empty string."""
        self.assertIsInstance(Settings.IMPERSONATE_BROWSER, str)
        self.assertTrue(Settings.IMPERSONATE_BROWSER)

    def test_default_headers_request_json(self) -> None:
        self.assertEqual(
            Settings.DEFAULT_HEADERS["Accept"], "application/json"
        )


if __name__ == "__main__":
    unittest.main()
