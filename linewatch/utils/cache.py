"""
Short-lived in-memory cache for live query results.

Entries are (value, written_at) pairs keyed by category. The clock is a
constructor argument so expiry can be tested without sleeping.

Under asyncio the read-check-write sequence runs without interleaving, so no
lock is taken. A threaded caller must wrap get/set in a lock.
"""

import time
from typing import Any, Callable, Generic, Optional, TypeVar

V = TypeVar("V")


class TTLCache(Generic[V]):
    """Fixed-TTL cache with an injectable clock."""

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: dict[str, tuple[V, float]] = {}

    def get(self, key: str) -> Optional[V]:
        """Return the cached value if it is still fresh."""
        entry = self._data.get(key)
        if entry is None:
            return None
        value, written_at = entry
        if self._clock() - written_at >= self.ttl_seconds:
            return None
        return value

    def set(self, key: str, value: V) -> None:
        self._data[key] = (value, self._clock())
        self._cleanup()

    def is_fresh(self, key: str) -> bool:
        return self.get(key) is not None

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one key, or everything when no key is given."""
        if key is None:
            self._data.clear()
        else:
            self._data.pop(key, None)

    def _cleanup(self) -> None:
        """Remove expired entries."""
        now = self._clock()
        expired = [
            k for k, (_, written_at) in self._data.items()
            if now - written_at >= self.ttl_seconds
        ]
        for k in expired:
            del self._data[k]

    def get_metrics(self) -> dict[str, Any]:
        return {
            "entries": len(self._data),
            "ttl_seconds": self.ttl_seconds,
        }
