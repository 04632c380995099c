"""
Shared key/value store of JSON blobs.

Process-wide mapping from string keys to JSON-serialized values, used as
the backing storage for the order collection (key ``allOrders``).

Thread Safety:
    - All reads and writes go through one re-entrant lock
    - ``transaction()`` holds the lock across a read-modify-write so a
      full-collection overwrite cannot discard a concurrent change

Persistence:
    - In memory by default
    - With ``path`` set, every write is flushed to a JSON file and the
      file is loaded on startup
"""

from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

from core.exceptions import StoreError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

ALL_ORDERS_KEY = "allOrders"


class SharedStore:
    """
    Thread-safe key/value store holding JSON strings.

    Malformed JSON under any key is treated as absent.
    """

    def __init__(self, path: Optional[Path] = None):
        self._data: Dict[str, str] = {}
        self._lock = threading.RLock()
        self._path = Path(path) if path else None

        if self._path and self._path.exists():
            self._load()

    @contextmanager
    def transaction(self) -> Iterator["SharedStore"]:
        """Hold the store lock for a read-modify-write sequence."""
        with self._lock:
            yield self

    def get_raw(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_raw(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def get_json(self, key: str) -> Any:
        """
        Read and parse the value under ``key``.

        Returns:
            Parsed value, or None if the key is missing or holds malformed JSON
        """
        raw = self.get_raw(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning(f"Malformed JSON under '{key}', treating as absent: {e}")
            return None

    def set_json(self, key: str, value: Any) -> None:
        self.set_raw(key, json.dumps(value))

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
            self._flush()

    def clear(self) -> int:
        """
        Remove every key.

        Returns:
            Number of keys removed
        """
        with self._lock:
            count = len(self._data)
            self._data.clear()
            self._flush()
            logger.info(f"Cleared {count} keys from shared store")
            return count

    def _load(self) -> None:
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load store file {self._path}, starting empty: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"Store file {self._path} is not an object, starting empty")
            return

        self._data = {str(k): v for k, v in data.items() if isinstance(v, str)}
        logger.info(f"Loaded {len(self._data)} keys from {self._path}")

    def _flush(self) -> None:
        if not self._path:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f)
            tmp_path.replace(self._path)
        except OSError as e:
            raise StoreError(f"Failed to write store file {self._path}", {"error": str(e)}) from e
