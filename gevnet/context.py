"""Thread-safe key/value store attached to a connection."""

from __future__ import annotations

import threading
from typing import Any


class KeyValueContext:
    """A small dictionary guarded by a lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._kv: dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._kv[key] = value

    def delete(self, key: str) -> None:
        """Remove ``key``; missing keys are ignored."""
        with self._lock:
            self._kv.pop(key, None)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._kv.get(key, default)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._kv

    def reset(self) -> None:
        """Remove every key."""
        with self._lock:
            self._kv = {}