"""
Shared message retry counter cache.

Transports use it to count delivery retries per message id so a message that
keeps failing to decrypt is not re-requested forever. One instance is shared
by every session; each single-key operation is atomic.
"""

import threading
import time
from typing import Any, Optional


class MessageRetryCache:
    """Thread-safe key -> value store with optional per-entry expiry."""

    def __init__(self, ttl_seconds: float = 0):
        # 0 = entries never expire
        self.ttl_seconds = ttl_seconds
        self._data: dict[str, tuple[Any, Optional[float]]] = {}
        self._lock = threading.Lock()

    def _expiry(self) -> Optional[float]:
        if self.ttl_seconds:
            return time.monotonic() + self.ttl_seconds
        return None

    def _live(self, key: str) -> Optional[tuple[Any, Optional[float]]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and expires_at <= time.monotonic():
            del self._data[key]
            return None
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._live(key)
            return entry[0] if entry else default

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = (value, self._expiry())

    def increment(self, key: str, amount: int = 1) -> int:
        """Add ``amount`` to the counter at ``key`` (missing = 0) and return it."""
        with self._lock:
            entry = self._live(key)
            value = (entry[0] if entry else 0) + amount
            self._data[key] = (value, self._expiry())
            return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def flush_all(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
