"""Key-value persistence for the review prompt counters and dates.

The engine only needs get/set/remove by key. Typed accessors on the base
class turn whatever the backend holds into the engine's view of it: a missing
or malformed integer reads as 0, a missing or malformed timestamp or string
reads as absent. Nothing here raises for bad persisted data.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Storage capability the engine persists through.

    Backends implement the four raw operations; the typed accessors are shared.
    """

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the stored value, or None when the key is absent."""
        raise NotImplementedError("KeyValueStore.get not implemented")

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError("KeyValueStore.set not implemented")

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete the key. Removing an absent key is a no-op."""
        raise NotImplementedError("KeyValueStore.remove not implemented")

    @abstractmethod
    def contains(self, key: str) -> bool:
        raise NotImplementedError("KeyValueStore.contains not implemented")

    # -- integers -----------------------------------------------------------

    def get_int(self, key: str) -> int:
        value = self.get(key)
        if value is None:
            return 0
        if isinstance(value, bool):
            logger.warning(f"Ignoring non-integer value for {key}: {value!r}")
            return 0
        if isinstance(value, int):
            return value
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-integer value for {key}: {value!r}")
            return 0

    def set_int(self, key: str, value: int) -> None:
        self.set(key, int(value))

    # -- timestamps ---------------------------------------------------------

    def get_timestamp(self, key: str) -> datetime | None:
        value = self.get(key)
        if value is None or isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value)
            except ValueError:
                pass
        logger.warning(f"Ignoring unreadable timestamp for {key}: {value!r}")
        return None

    def set_timestamp(self, key: str, value: datetime) -> None:
        self.set(key, value)

    # -- strings ------------------------------------------------------------

    def get_string(self, key: str) -> str | None:
        value = self.get(key)
        if value is None or isinstance(value, str):
            return value
        logger.warning(f"Ignoring non-string value for {key}: {value!r}")
        return None

    def set_string(self, key: str, value: str) -> None:
        self.set(key, str(value))


class InMemoryStore(KeyValueStore):
    """Dict-backed store. State lasts as long as the object."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Any:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._data)


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class JsonFileStore(KeyValueStore):
    """Store persisted as a single JSON document, rewritten on every change.

    Timestamps are written as ISO-8601 strings and parsed back by
    ``get_timestamp``. Writes go to a temp file in the same directory and are
    moved into place, so a crash never leaves a half-written document.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(f"Could not read review state from {self.path}: {exc}; starting empty")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Review state in {self.path} is not a JSON object; starting empty")
            return {}
        return data

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, sort_keys=True, default=_encode)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get(self, key: str) -> Any:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def remove(self, key: str) -> None:
        with self._lock:
            if key not in self._data:
                return
            del self._data[key]
            self._flush()

    def contains(self, key: str) -> bool:
        with self._lock:
            return key in self._data
