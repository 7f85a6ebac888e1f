"""Cache stores for endpoint responses.

Any object with ``get / set / delete / clear`` (sync or async) and optional
``retention`` / ``evict_on_error`` attributes can back a client cache.
`MemoryCacheStore` is the default.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Awaitable
from typing import Any, Protocol, TypeVar, runtime_checkable

from .entry import CacheEntry, now_ms

logger = logging.getLogger("restcase.cache")

T = TypeVar("T")


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for cache stores. Methods may return awaitables.

    `clear(pattern)` removes every entry whose key starts with `pattern`
    (everything when omitted).
    """

    retention: float | None
    evict_on_error: bool

    def get(self, key: str) -> CacheEntry[Any] | None | Awaitable[CacheEntry[Any] | None]: ...
    def set(self, key: str, entry: CacheEntry[Any]) -> object: ...
    def delete(self, key: str) -> bool | Awaitable[bool]: ...
    def clear(self, pattern: str | None = None) -> object: ...


async def resolve(value: T | Awaitable[T]) -> T:
    """Await store results that are awaitable; pass plain values through."""
    if inspect.isawaitable(value):
        return await value
    return value


class MemoryCacheStore:
    """Thread-safe in-memory store keyed by cache key.

    Entries never expire on their own; freshness is judged by the reader
    against the effective retention. With `max_entries`, writing a new key to
    a full store drops entries past the store retention first, then the oldest.

    Args:
        retention: Store-wide default retention in ms (None = never expires)
        evict_on_error: Store-wide default for evict-on-error
        max_entries: Capacity (None = unbounded)

    Example:
        >>> store = MemoryCacheStore(retention=CacheRetention.HOUR)
        >>> client = BaseClient(settings, cache_store=store, api=api)
    """

    __slots__ = ("_entries", "_lock", "retention", "evict_on_error", "max_entries")

    def __init__(self, retention: float | None = None, evict_on_error: bool = False,
                 max_entries: int | None = None) -> None:
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._lock = threading.RLock()
        self.retention = retention
        self.evict_on_error = evict_on_error
        self.max_entries = max_entries

    def get(self, key: str) -> CacheEntry[Any] | None:
        with self._lock:
            if (entry := self._entries.get(key)) is not None:
                entry.accessed_at = now_ms()
            return entry

    def set(self, key: str, entry: CacheEntry[Any]) -> MemoryCacheStore:
        with self._lock:
            if self.max_entries and key not in self._entries and len(self._entries) >= self.max_entries:
                self._evict_unlocked()
            self._entries[key] = entry
        return self

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self, pattern: str | None = None) -> None:
        with self._lock:
            if not pattern:
                self._entries.clear()
                return
            keys = [k for k in self._entries if k.startswith(pattern)]
            for key in keys:
                del self._entries[key]
        logger.debug("cleared %d entries by prefix", len(keys))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return self.size

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def _evict_unlocked(self) -> None:
        """Drop stale entries, then the oldest until below capacity. Caller must hold lock."""
        now = now_ms()
        for key in [k for k, e in self._entries.items() if not e.is_fresh(self.retention, now)]:
            del self._entries[key]
        overflow = len(self._entries) - self.max_entries + 1  # type: ignore[operator]
        if overflow > 0:
            for key in sorted(self._entries, key=lambda k: self._entries[k].cached_at)[:overflow]:
                del self._entries[key]
            logger.debug("evicted %d oldest entries at capacity %s", overflow, self.max_entries)

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def stats(self) -> dict[str, object]:
        """Store statistics for monitoring."""
        with self._lock:
            now = now_ms()
            stale = sum(1 for e in self._entries.values() if not e.is_fresh(self.retention, now))
            return {
                "total_entries": len(self._entries),
                "stale_entries": stale,
                "active_entries": len(self._entries) - stale,
                "retention": self.retention,
                "max_entries": self.max_entries,
            }
