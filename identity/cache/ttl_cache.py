"""
Process-wide key-value cache with per-key expiry.

Values are stored as strings (callers serialize). Expiry is checked lazily
on every read; clear() drops everything at once. compare_and_set() holds the
cache lock across read, compare and write, which is what makes single-use
handshake redemption safe under concurrent callers.
"""

import threading
import time
from typing import Callable, Dict, Optional, Tuple


class TTLCache:
    """Thread-safe string cache with per-key time-to-live"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[str, float]] = {}

    def _live_entry(self, key: str) -> Optional[Tuple[str, float]]:
        # Caller holds self._lock
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry[1]:
            del self._entries[key]
            return None
        return entry

    def put(self, key: str, value: str, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._live_entry(key)
            return entry[0] if entry else None

    def remaining_ttl(self, key: str) -> Optional[float]:
        with self._lock:
            entry = self._live_entry(key)
            return entry[1] - self._clock() if entry else None

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def compare_and_set(self, key: str, expected: str, new_value: str) -> bool:
        """Replace the value only if it still equals expected; the expiry is kept"""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None or entry[0] != expected:
                return False
            self._entries[key] = (new_value, entry[1])
            return True

    def clear(self) -> int:
        """Drop every entry; returns how many were held"""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for _, expires_at in self._entries.values() if now < expires_at)


# Global instance
cache = TTLCache()
