"""Thread-safe in-memory TTL cache with lazy expiry on read."""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Hashable, Optional, TypeVar

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="cache")

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """A cached value and the clock reading at which it stops being served."""
    value: V
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """Return True once `now` has reached the expiry time."""
        return now >= self.expires_at


class TTLCache(Generic[V]):
    """Key/value store where every entry carries its own absolute expiry.

    Expired entries are removed when they are read; there is no background
    sweep, no capacity bound and no LRU. A lock guards every mutation because
    the dashboard fans its fetches out over worker threads.
    """

    def __init__(self, default_ttl_seconds: float | None = None,
                 clock: Callable[[], float] = time.monotonic, name: str = "cache") -> None:
        """Create an empty cache; `clock` must be monotonic and is injectable for tests."""
        logger.debug("Initializing TTLCache", extra={"cache_name": name})
        self.name = name
        self.default_ttl = default_ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry[V]] = {}
        self._lock = threading.Lock()

    def now(self) -> float:
        """Return the cache's current clock reading."""
        return self._clock()

    def set(self, key: Hashable, value: V, ttl_seconds: float | None = None) -> CacheEntry[V]:
        """Store `value` until now + ttl, replacing any existing entry for `key`."""
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        if ttl is None:
            raise ValueError(f"No TTL given for key {key!r} and cache '{self.name}' has no default")
        entry = CacheEntry(value=value, expires_at=self._clock() + ttl)
        with self._lock:
            self._entries[key] = entry
        return entry

    def get(self, key: Hashable) -> Optional[V]:
        """Return the live value for `key`, or None; a stale entry is evicted on the way."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                self._entries.pop(key, None)
                logger.debug("Evicted expired entry", extra={"cache_name": self.name, "key": str(key)})
                return None
            return entry.value

    def peek(self, key: Hashable) -> Optional[CacheEntry[V]]:
        """Return the raw entry for `key` without checking expiry or evicting it."""
        with self._lock:
            return self._entries.get(key)

    def delete(self, key: Hashable) -> None:
        """Remove `key` if present."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()

    def expires_in(self, key: Hashable) -> Optional[float]:
        """Seconds until `key` expires, or None when it is absent or already stale."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            remaining = entry.expires_at - self._clock()
            return remaining if remaining > 0 else None

    def stats(self) -> Dict[str, Any]:
        """Return entry counts; stale entries still held are counted separately."""
        with self._lock:
            now = self._clock()
            stale = sum(1 for e in self._entries.values() if e.is_expired(now))
            return {"name": self.name, "entries": len(self._entries), "stale": stale}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
