"""
In-process TTL cache for read responses.
"""

import copy
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_TTL_MILLIS = 300_000


@dataclass
class CacheEntry:
    """A cached payload and the clock reading at which it was stored."""

    value: Any
    inserted_at: float


class ResponseCache:
    """Key/value store whose entries stop being served once older than the TTL.

    Every operation runs under a single lock so that the whole
    check-then-act sequence is atomic, whether callers share one event
    loop or several threads.
    """

    def __init__(
        self,
        ttl_millis: int = DEFAULT_TTL_MILLIS,
        *,
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional["MetricsCollector"] = None,
        cache_type: str = "response",
    ):
        self.ttl_millis = ttl_millis
        self.cache_type = cache_type
        self.metrics = metrics
        self.logger = get_logger("users.cache")
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._invalidations = 0

    @property
    def ttl_seconds(self) -> float:
        return self.ttl_millis / 1000.0

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.inserted_at > self.ttl_seconds

    def put(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        snapshot = copy.deepcopy(value)
        with self._lock:
            self._entries[key] = CacheEntry(value=snapshot, inserted_at=self._clock())
        self.logger.debug("Cached value", key=key)

    def get(self, key: str) -> Optional[Any]:
        """Return the value under ``key`` unless it is absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_expired(entry, self._clock()):
                del self._entries[key]
                entry = None

            if entry is None:
                self._misses += 1
            else:
                self._hits += 1

        if entry is None:
            self._record("cache_misses_total")
            return None

        self._record("cache_hits_total")
        return copy.deepcopy(entry.value)

    def invalidate_prefix(self, prefix: str) -> None:
        """Drop every entry whose key starts with ``prefix``."""
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            self._invalidations += 1

        self._record("cache_invalidations_total")
        self.logger.info("Invalidated cache namespace", prefix=prefix, keys_count=len(doomed))

    def sweep_expired(self) -> int:
        """Remove expired entries and return how many were dropped."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
            for key in expired:
                del self._entries[key]

        if expired:
            self.logger.debug("Swept expired cache entries", keys_count=len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "invalidations": self._invalidations,
                "ttl_millis": self.ttl_millis,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        # Physical presence, regardless of expiry
        with self._lock:
            return key in self._entries

    def _record(self, metric_name: str) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.increment_counter(metric_name, cache_type=self.cache_type)
        except Exception as exc:  # pragma: no cover - metrics failures never reach callers
            self.logger.debug("Failed to record cache metric", metric=metric_name, error=str(exc))
