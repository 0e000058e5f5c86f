"""Shared in-memory TTL cache for external source values.

Entries are keyed by source id, not by user: upstream market data is the
same for everyone, so one fetch can serve every request until it expires.
Expired entries are kept around so the aggregator can fall back to the last
known value when a provider fails; ``get()`` itself never returns them.
"""
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field


@dataclass
class CacheEntry:
    """A cached source value with its fetch time and TTL."""
    key: str
    value: Any
    fetched_at: float
    ttl: float
    fetched_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_fresh(self, now: float) -> bool:
        return now - self.fetched_at < self.ttl


class SourceCache:
    """
    TTL cache shared across requests.

    No lock is taken: providers are read-only, so two requests racing to
    refresh the same expired key just overwrite each other with equally
    valid values.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._cache: Dict[str, CacheEntry] = {}
        self._clock = clock

    def get(self, key: str) -> Optional[CacheEntry]:
        """Get the entry for ``key`` if it is still within its TTL."""
        entry = self._cache.get(key)
        if entry is None or not entry.is_fresh(self._clock()):
            return None
        return entry

    def get_stale(self, key: str) -> Optional[CacheEntry]:
        """Get the last known entry for ``key`` regardless of TTL (soft-fail fallback only)."""
        return self._cache.get(key)

    def set(self, key: str, value: Any, ttl: float) -> CacheEntry:
        """Store ``value`` under ``key``, replacing any previous entry."""
        entry = CacheEntry(key=key, value=value, fetched_at=self._clock(), ttl=ttl)
        self._cache[key] = entry
        return entry

    def invalidate(self, key: str) -> None:
        self._cache.pop(key, None)

    def invalidate_pattern(self, pattern: str) -> int:
        """Drop every entry whose key contains ``pattern``; returns how many went."""
        keys_to_remove = [k for k in self._cache if pattern in k]
        for key in keys_to_remove:
            del self._cache[key]
        return len(keys_to_remove)

    def clear(self) -> None:
        """Clear entire cache."""
        self._cache.clear()

    def stats(self) -> Dict[str, Any]:
        now = self._clock()
        keys: List[str] = list(self._cache)
        return {
            "size": len(keys),
            "fresh": sum(1 for k in keys if self._cache[k].is_fresh(now)),
            "keys": keys,
        }


# Global cache shared by every request
source_cache = SourceCache()
