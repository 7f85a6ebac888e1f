"""Cache records, per-call cache options and retention constants."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Final, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, NonNegativeFloat, TypeAdapter

V = TypeVar("V")


def now_ms() -> float:
    """Wall-clock time in epoch milliseconds."""
    return time.time() * 1000


class CacheRetention:
    """Common retention durations in milliseconds."""

    HOUR: Final = 60 * 60 * 1000
    DAY: Final = 24 * HOUR
    WEEK: Final = 7 * DAY
    MONTH: Final = 31 * DAY
    YEAR: Final = 365 * DAY


@dataclass(slots=True)
class CacheEntry(Generic[V]):
    """One stored response.

    Attributes:
        key: Cache key the entry was written under
        value: Stored response (an independent clone)
        cached_at: Write time, epoch ms
        accessed_at: Last read time, epoch ms (maintained by stores that track it)
        retention: Retention saved with the entry by a call using ``save_retention``
    """

    key: str
    value: V
    cached_at: float
    accessed_at: float | None = None
    retention: float | None = None

    def expires_at(self, retention: float | None) -> float | None:
        return self.cached_at + retention if retention else None

    def is_fresh(self, retention: float | None, now: float | None = None) -> bool:
        """Falsy retention never expires."""
        if not retention:
            return True
        return self.cached_at + retention > (now_ms() if now is None else now)


KeyOverride = Callable[[str], str]


class CacheOptions(BaseModel):
    """Per-call cache options.

    Attributes:
        force: Skip the cache read (the fresh response is still written)
        retention: Retention in ms for this call; wins over template and store
        evict_on_error: Evict this call's entry when the fetch fails
        save_retention: Persist `retention` on the written entry so later reads honour it
        cache_key: String replacing the computed key, or a callable post-processing it
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    force: bool = False
    retention: NonNegativeFloat | None = None
    evict_on_error: bool | None = None
    save_retention: bool = False
    cache_key: str | KeyOverride | None = None

    def apply_key(self, key: str) -> str:
        match self.cache_key:
            case None | "":
                return key
            case str(override):
                return override
            case fn:
                return fn(key)


_CACHE_OPTIONS: TypeAdapter[CacheOptions] = TypeAdapter(CacheOptions)
_DEFAULT_OPTIONS = CacheOptions()


def to_cache_options(value: CacheOptions | dict[str, Any] | None) -> CacheOptions:
    """Accept a CacheOptions, an equivalent dict, or None."""
    if value is None:
        return _DEFAULT_OPTIONS
    return value if isinstance(value, CacheOptions) else _CACHE_OPTIONS.validate_python(value)


Evict = Callable[[], Awaitable[bool]]


@dataclass(slots=True, frozen=True)
class CacheInfo(Generic[V]):
    """Cache annotation attached to responses of cached calls.

    Attributes:
        previous: Entry found before this call (stale or fresh), if any
        current: Entry backing this response
        is_cache: Whether the response was served from the store
        evict: Deletes this call's entry
    """

    previous: CacheEntry[V] | None
    current: CacheEntry[V] | None
    is_cache: bool
    evict: Evict
