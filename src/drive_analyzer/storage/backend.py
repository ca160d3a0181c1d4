"""Key/value persistence backed by one JSON file per key."""

from __future__ import annotations

import json
import logging
import os
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable

from drive_analyzer.exceptions import StorageError

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".drive-analyzer"

Listener = Callable[[str, Any], None]


def default_data_dir() -> Path:
    """Data directory from DRIVE_ANALYZER_DATA_DIR, else ~/.drive-analyzer."""
    env = os.environ.get("DRIVE_ANALYZER_DATA_DIR")
    return Path(env).expanduser() if env else DEFAULT_DATA_DIR


class JsonFileStore:
    """Persistent store with get/set/remove and per-key change listeners.

    Each key maps to ``<directory>/<key>.json``. Writes go through a
    temporary file and ``os.replace`` so a crash never leaves half a file.

    Args:
        directory: Where key files live. Created on first write.
    """

    def __init__(self, directory: str | Path | None = None):
        self.directory = Path(directory) if directory else default_data_dir()
        self._listeners: dict[str, list[Listener]] = defaultdict(list)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise StorageError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        """Return the stored value, or ``default`` if missing or unreadable."""
        path = self._path(key)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error(f"Malformed JSON in {path}, using default: {e}")
            return default
        except OSError as e:
            raise StorageError(f"Failed to read {path}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(value, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to write {path}: {e}") from e
        logger.debug(f"Stored {key}")
        self._notify(key, value)

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}") from e
        self._notify(key, None)

    def has(self, key: str) -> bool:
        return self._path(key).exists()

    def subscribe(self, key: str, callback: Listener) -> Callable[[], None]:
        """Call ``callback(key, value)`` after every change to ``key``.

        Returns a function that removes the subscription.
        """
        self._listeners[key].append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners[key]:
                self._listeners[key].remove(callback)

        return unsubscribe

    def _notify(self, key: str, value: Any) -> None:
        for callback in list(self._listeners.get(key, ())):
            callback(key, value)
