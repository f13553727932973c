# tests/test_local_store.py

"""Tests for LocalStore client-state persistence."""

import tempfile
import unittest
from pathlib import Path

from src.storage.local_store import LocalStore


class TestLocalStore(unittest.TestCase):
    """Verify JSON persistence of client state."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.state_dir = Path(self._tmp.name) / "state"
        self.store = LocalStore(self.state_dir)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_creates_state_dir(self) -> None:
        self.assertTrue(self.state_dir.is_dir())

    def test_set_then_get(self) -> None:
        path = self.store.set("currency", "EUR")
        self.assertTrue(path.exists())
        self.assertEqual(self.store.get("currency"), "EUR")

    def test_unicode_is_written_verbatim(self) -> None:
        path = self.store.set("note", {"symbol": "₾"})
        self.assertIn("₾", path.read_text(encoding="utf-8"))

    def test_missing_key_is_none(self) -> None:
        self.assertIsNone(self.store.get("nothing"))

    def test_corrupt_file_is_none(self) -> None:
        """Unparseable JSON is logged and read back as absent."""
        (self.state_dir / "favorites.json").write_text(
            "{not json", encoding="utf-8"
        )
        with self.assertLogs("storefront.storage", level="WARNING"):
            self.assertIsNone(self.store.get("favorites"))

    def test_remove(self) -> None:
        self.store.set("token", "abc")
        self.store.remove("token")
        self.assertIsNone(self.store.get("token"))
        # Removing again is a no-op
        self.store.remove("token")

    def test_key_is_sanitised(self) -> None:
        path = self.store.set("../escape me", 1)
        self.assertEqual(path.parent, self.state_dir)
        self.assertEqual(self.store.get("../escape me"), 1)


if __name__ == "__main__":
    unittest.main()
