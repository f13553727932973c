# src/storage/local_store.py

"""Persists small pieces of client state (currency, favourites, token) to disk."""

import json
import logging
from pathlib import Path
from typing import Any

from src.config.settings import Settings

logger = logging.getLogger("storefront.storage")


class LocalStore:
    """Key/value JSON store, one file per key under ``state_dir``.

    Missing, unreadable or corrupt entries read back as ``None``.
    """

    def __init__(self, state_dir: Path | None = None) -> None:
        self.state_dir: Path = state_dir or Settings.STATE_DIR
        self.state_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("LocalStore initialised, state_dir=%s", self.state_dir)

    def _path_for(self, key: str) -> Path:
        safe_key = "".join(
            ch if ch.isalnum() or ch in "-_" else "_" for ch in key
        )
        return self.state_dir / f"{safe_key}.json"

    def get(self, key: str) -> Any:
        """Return the stored value for ``key`` or ``None``."""
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError):
            logger.warning(
                "Ignoring unreadable client state '%s' at %s",
                key,
                path,
                exc_info=True,
            )
            return None

    def set(self, key: str, value: Any) -> Path:
        """Write ``value`` as JSON and return the file path."""
        path = self._path_for(key)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(value, f, ensure_ascii=False, indent=2)
        logger.debug("Saved client state '%s' to %s", key, path)
        return path

    def remove(self, key: str) -> None:
        path = self._path_for(key)
        if path.exists():
            path.unlink()
            logger.debug("Removed client state '%s'", key)
