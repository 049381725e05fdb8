"""
core/cache.py - Time-based cache for short-lived values (quotes).

Entries store (value, inserted_at_ms) and are checked against a fixed TTL
at lookup time. Entries are kept in insertion order, so every set() drops
expired entries from the front of the map; keys that are never read again
(reverse quotes keyed by a moving amount) do not accumulate.
"""

from typing import Callable, Generic, Hashable, Optional, TypeVar

from core.time import is_fresh, now_ms

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TTLCache(Generic[K, V]):
    """
    Fixed-TTL cache.

    Usage:
        cache = TTLCache(ttl_ms=3000)
        cache.set(key, quote)
        cache.get(key)  # quote, or None once 3s have passed

    The clock must not go backwards.
    """

    def __init__(self, ttl_ms: int, clock: Callable[[], int] = now_ms):
        if ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be positive, got {ttl_ms}")
        self.ttl_ms = ttl_ms
        self._clock = clock
        self._entries: dict[K, tuple[V, int]] = {}

    def get(self, key: K) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, inserted_ms = entry
        if not is_fresh(inserted_ms, self.ttl_ms, current_ms=self._clock()):
            del self._entries[key]
            return None
        return value

    def set(self, key: K, value: V) -> None:
        current = self._clock()
        # Re-insert at the back so the map stays ordered by insertion time
        self._entries.pop(key, None)
        self._evict_expired(current)
        self._entries[key] = (value, current)

    def _evict_expired(self, current_ms: int) -> None:
        while self._entries:
            oldest = next(iter(self._entries))
            if is_fresh(self._entries[oldest][1], self.ttl_ms, current_ms=current_ms):
                return
            del self._entries[oldest]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
