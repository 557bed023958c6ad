"""
In-process response cache with per-entry TTL.

Provides:
- TTLCache: key -> value map where each entry carries an absolute expiry
- build_cache_key: deterministic key from a resource name and sanitized params
- get_cache: FastAPI dependency returning the cache owned by the app

The cache is created once in the app lifespan and handed to handlers through
the dependency; nothing lives at module level. It is an optimization only:
every response must be identical with a cold, warm or absent cache.

Expired entries are removed when looked up, and all of them are swept on a
write once cleanup_interval has passed since the last sweep. Free-text
filters make the key space open-ended, so the map is also capped at
max_size entries: a write to a new key at the cap first evicts the entry
closest to expiry. There is no background sweep.

Usage:
    payload = cache.get_or_compute(
        build_cache_key("people", params.key_pairs()),
        lambda: load_people(db, params),
        refresh=refresh,
    )
"""
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Tuple
from urllib.parse import urlencode

from fastapi import Request

logger = logging.getLogger(__name__)

DEFAULT_TTL = 60 * 60  # 1 hour
DEFAULT_MAX_SIZE = 1000
DEFAULT_CLEANUP_INTERVAL = 5 * 60


@dataclass
class CacheEntry:
    """A single cache entry with value and absolute expiry."""
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class TTLCache:
    """
    Process-wide key/value store with lazy expiry.

    Sync route handlers run on a thread pool, so every map access takes the
    lock. The lock is never held while computing a value: two concurrent
    misses for the same key both compute and the last write wins.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        max_size: int = DEFAULT_MAX_SIZE,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize an empty cache.

        Args:
            default_ttl: Time-to-live in seconds for entries set without one
            max_size: Maximum number of entries
            cleanup_interval: Minimum seconds between sweeps of expired entries
            clock: Source of the current time, in seconds
        """
        self.default_ttl = default_ttl
        self.max_size = max_size
        self.cleanup_interval = cleanup_interval
        self._clock = clock
        self._last_cleanup = clock()
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "evictions": 0,
        }

    def get(self, key: str) -> Optional[Any]:
        """
        Get a value from the cache.

        Returns:
            Cached value, or None if absent or expired (expired entries are
            deleted)
        """
        with self._lock:
            entry = self._entries.get(key)

            if entry is None:
                self._stats["misses"] += 1
                return None

            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._stats["evictions"] += 1
                self._stats["misses"] += 1
                return None

            self._stats["hits"] += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Store a value, replacing any existing entry for the key.

        Args:
            key: Cache key
            value: JSON-serializable payload
            ttl: Time-to-live in seconds (uses default if None)
        """
        if ttl is None:
            ttl = self.default_ttl

        with self._lock:
            now = self._clock()
            self._maybe_cleanup(now)

            if len(self._entries) >= self.max_size and key not in self._entries:
                self._evict_soonest()

            self._entries[key] = CacheEntry(
                value=value,
                expires_at=now + ttl,
            )
            self._stats["sets"] += 1

    def clear(self, prefix: Optional[str] = None) -> int:
        """
        Remove all entries, or only those whose key starts with prefix.

        Returns:
            Number of entries removed
        """
        with self._lock:
            if not prefix:
                count = len(self._entries)
                self._entries.clear()
                return count

            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Any],
        refresh: bool = False,
        ttl: Optional[float] = None,
    ) -> Any:
        """
        Return the cached value for key, computing and storing it on a miss.

        With refresh=True the lookup is skipped but the fresh value is still
        stored, overwriting any live entry.
        """
        if refresh:
            logger.debug(f"Cache bypass for {key}")
        else:
            value = self.get(key)
            if value is not None:
                logger.debug(f"Cache hit for {key}")
                return value
            logger.debug(f"Cache miss for {key}")

        value = compute()
        self.set(key, value, ttl=ttl)
        return value

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {**self._stats, "size": len(self._entries), "max_size": self.max_size}

    def _maybe_cleanup(self, now: float) -> None:
        """Drop expired entries if cleanup_interval has passed. Lock held."""
        if now - self._last_cleanup < self.cleanup_interval:
            return

        self._last_cleanup = now
        expired_keys = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired_keys:
            del self._entries[key]

        if expired_keys:
            self._stats["evictions"] += len(expired_keys)
            logger.debug(f"Cache cleanup: removed {len(expired_keys)} expired entries")

    def _evict_soonest(self) -> None:
        """Drop the entry closest to expiry. Lock held."""
        if not self._entries:
            return
        key = min(self._entries, key=lambda k: self._entries[k].expires_at)
        del self._entries[key]
        self._stats["evictions"] += 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


def build_cache_key(resource: str, pairs: Iterable[Tuple[str, Any]]) -> str:
    """
    Build a cache key from a resource name and sanitized parameters.

    Pairs are encoded in the order given, so callers must produce them in a
    fixed order. None and empty-string values are dropped so an absent
    parameter and an empty one share a key.

    Example:
        build_cache_key("people", [("search", "ada"), ("page", 1)])
        -> "people:search=ada&page=1"
    """
    kept = [(name, value) for name, value in pairs if value is not None and value != ""]
    return f"{resource}:{urlencode(kept)}"


def get_cache(request: Request) -> TTLCache:
    """Dependency returning the cache created in the app lifespan."""
    return request.app.state.cache
