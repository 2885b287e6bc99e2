"""A bounded, time-limited cache for analysis and duplication results."""

import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

MISSING = object()


@dataclass
class CacheEntry:
    """A cached value with the monotonic time it was stored."""

    key: str
    value: Any
    inserted_at: float


class ResultCache:
    """Insertion-ordered cache with lazy TTL expiry and FIFO eviction.

    Reading an entry never refreshes its position; the oldest insertion is
    evicted first once max_size is reached.
    """

    def __init__(
        self,
        max_size: int = 1000,
        ttl_ms: float = 300_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache with its capacity, TTL and clock."""
        self.max_size = max_size
        self.ttl_seconds = ttl_ms / 1000
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def size(self) -> int:
        """Number of stored entries, expired ones included until swept."""
        with self._lock:
            return len(self._entries)

    @property
    def hit_rate(self) -> float:
        """Share of lookups served from the cache, as a percentage."""
        with self._lock:
            lookups = self.hits + self.misses
            return round(self.hits / lookups * 100, 2) if lookups else 0.0

    def get(self, key: str, default: Any = MISSING) -> Any:
        """Return the cached value, or default when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return default
            if self._is_expired(entry):
                del self._entries[key]
                self.misses += 1
                return default
            self.hits += 1
            return entry.value

    def put(self, key: str, value: Any) -> None:
        """Store a value, evicting the oldest insertion when full."""
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            while self._entries and len(self._entries) >= self.max_size:
                self._entries.popitem(last=False)
                self.evictions += 1
            if self.max_size > 0:
                self._entries[key] = CacheEntry(key, value, self._clock())

    def sweep_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            expired = [k for k, e in self._entries.items() if self._is_expired(e)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self) -> None:
        """Drop all entries; counters are kept."""
        with self._lock:
            self._entries.clear()

    def reset_stats(self) -> None:
        """Zero the hit, miss and eviction counters."""
        with self._lock:
            self.hits = 0
            self.misses = 0
            self.evictions = 0

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.inserted_at > self.ttl_seconds
