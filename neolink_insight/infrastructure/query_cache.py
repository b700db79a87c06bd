"""Query Cache - TTL memoization of parsed query specifications.

An explicit cache object owned by whoever builds the intent analyzer and
passed into it, so two analyzers never share hidden state.

Architecture:
    - dict of key -> (stored_at, value) guarded by a lock
    - Expiry is checked on read; ``evict_expired`` removes stale entries
      explicitly
    - The clock is injectable so tests can advance time deterministically
"""

import logging
import threading
import time
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar('V')

DEFAULT_TTL_SECONDS = 300.0


class QueryCache(Generic[V]):
    """Time-to-live cache keyed by normalized query text.

    Parameters:
        ttl_seconds: Lifetime of an entry (default 5 minutes)
        max_entries: Entries kept before the oldest are dropped
        clock: Monotonic time source in seconds
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, tuple[float, V]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def normalize_key(query: str) -> str:
        return " ".join(query.lower().split())

    def get(self, query: str) -> Optional[V]:
        """Return the cached value, or None when absent or expired."""
        key = self.normalize_key(query)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[key]
                return None
            return value

    def set(self, query: str, value: V) -> None:
        key = self.normalize_key(query)
        with self._lock:
            self._entries[key] = (self._clock(), value)
            if len(self._entries) > self.max_entries:
                oldest = min(self._entries, key=lambda k: self._entries[k][0])
                del self._entries[oldest]

    def evict_expired(self) -> int:
        """Remove every expired entry and return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired query cache entries")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
