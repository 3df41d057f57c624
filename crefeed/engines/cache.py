"""In-memory cache store with per-entry expiry."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable


logger = logging.getLogger(__name__)


def source_cache_key(source_name: str) -> str:
    """Return the cache key holding a source's full article list."""
    return f"source:{source_name}:articles"


@dataclass(frozen=True)
class CacheEntry:
    """A cached value and the monotonic time at which it stops being valid."""
    key: str
    value: Any
    expires_at: float


class CacheStore:
    """Key/value store where every entry carries its own TTL.

    There is no eviction policy beyond expiry: the key space is one entry
    per source. An entry read at or after its expiry time is a miss and is
    dropped. ``set`` swaps a whole frozen entry into the dict in one step,
    so concurrent readers on the event loop see either the old value or
    the new one, never a mix.

    Attributes:
        clock: Callable returning monotonic seconds, injectable for tests
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on a miss or expired entry."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() >= entry.expires_at:
            # Only drop the entry we looked at, a newer one may have replaced it
            if self._entries.get(key) is entry:
                del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store value under key for ttl_seconds, replacing any prior entry."""
        if ttl_seconds <= 0:
            self.delete(key)
            return
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            expires_at=self.clock() + ttl_seconds,
        )

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> int:
        """Drop every entry and return how many were removed."""
        count = len(self._entries)
        self._entries.clear()
        if count:
            logger.info(f"Cleared {count} cache entries")
        return count

    def __len__(self) -> int:
        return len(self._entries)
