"""Read-through response caching for endpoint calls.

`cached_function` wraps a ``(params, init) -> CancellablePromise`` call into a
`CachedCall`. Per invocation:

- force: skip the read and fetch
- read: a stored entry is served (as a clone) while fresh under the effective
  retention (call > saved-with-entry > template > store; falsy never expires),
  and `on_hit` is told about the served call
- fetch: the fresh result is cloned into the store and returned annotated
- error: the entry is evicted when evict-on-error applies (call > template >
  store), then the original error is re-raised. Cancellation counts as an
  error here. A failing eviction is attached to that error as a note.

Concurrent calls for the same key are not coalesced: each one that misses
fetches and writes, and the last write wins.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from ...core.template import CachePolicy, policy_evict_on_error, policy_retention
from ...foundation.types import Init, Params
from ...runtime.cancellable import AbortSignal, CancellablePromise
from ..response import clone_response
from .entry import CacheEntry, CacheInfo, CacheOptions, now_ms, to_cache_options
from .store import CacheStore, resolve

logger = logging.getLogger("restcase.cache")

R = TypeVar("R")

KeyFunction = Callable[[Params | None, Init | None, CacheOptions], str]
EndpointCall = Callable[[Params | None, Init | None], CancellablePromise[Any]]
HitHook = Callable[[Params | None, Init | None, CancellablePromise[Any]], None]


def _first(*values: float | bool | None) -> Any:
    return next((v for v in values if v is not None), None)


class CachedCall(Generic[R]):
    """Cached variant of an endpoint call.

    Args:
        fn: Uncached call
        key: Cache key, or a function computing it from (params, init, options)
        cache: Store backing this call
        eviction_key: Prefix cleared by `evict` (defaults to `key`)
        retention: Template cache policy (number, CacheOption, or bool)
        on_hit: Called with (params, init, promise) when a stored entry is served
    """

    __slots__ = ("_fn", "_key", "_cache", "_eviction_key", "_policy", "_on_hit")

    def __init__(self, fn: EndpointCall, *, key: str | KeyFunction, cache: CacheStore,
                 eviction_key: str | KeyFunction | None = None, retention: CachePolicy | None = None,
                 on_hit: HitHook | None = None) -> None:
        self._fn, self._key, self._cache = fn, key, cache
        self._eviction_key, self._policy, self._on_hit = eviction_key, retention, on_hit

    @property
    def store(self) -> CacheStore:
        return self._cache

    def key_for(self, params: Params | None = None, init: Init | None = None,
                cache_options: CacheOptions | dict[str, Any] | None = None) -> str:
        """Cache key one call with these arguments reads and writes."""
        options = to_cache_options(cache_options)
        key = self._key(params, init, options) if callable(self._key) else self._key
        return options.apply_key(key)

    def __call__(self, params: Params | None = None, init: Init | None = None,
                 cache_options: CacheOptions | dict[str, Any] | None = None) -> CancellablePromise[R]:
        options = to_cache_options(cache_options)
        key = self.key_for(params, init, options)

        # inflight is filled once the fetch starts and receives forwarded cancellation;
        # outer holds the promise handed to on_hit
        inflight: list[CancellablePromise[R]] = []
        outer: list[CancellablePromise[R]] = []
        signal = AbortSignal()
        signal.add_listener(lambda reason: inflight and inflight[0].cancel(reason))
        outer.append(CancellablePromise(self._run(params, init, options, key, inflight, outer), signal=signal))
        return outer[0]

    async def _run(self, params: Params | None, init: Init | None, options: CacheOptions, key: str,
                   inflight: list[CancellablePromise[R]], outer: list[CancellablePromise[R]]) -> R:
        async def evict() -> bool:
            return await resolve(self._cache.delete(key))

        previous: CacheEntry[R] | None = None
        if not options.force:
            previous = await resolve(self._cache.get(key))
            if previous is not None:
                retention = _first(options.retention, previous.retention, policy_retention(self._policy),
                                   getattr(self._cache, "retention", None))
                if previous.is_fresh(retention):
                    logger.debug("cache hit (retention=%s)", retention)
                    if self._on_hit is not None:
                        self._on_hit(params, init, outer[0])
                    return clone_response(previous.value, CacheInfo(previous, previous, True, evict))
                logger.debug("cache stale (retention=%s)", retention)

        inflight.append(promise := self._fn(params, init))
        try:
            result = await promise
        except Exception as exc:
            if self._evicts_on_error(options):
                await self._evict_after_error(key, exc)
            raise

        entry = CacheEntry(key=key, value=clone_response(result), cached_at=now_ms(),
                           retention=options.retention if options.save_retention else None)
        await resolve(self._cache.set(key, entry))
        logger.debug("cache write (replaced=%s)", previous is not None)
        result.cache = CacheInfo(previous, entry, False, evict)  # type: ignore[attr-defined]
        return result

    def _evicts_on_error(self, options: CacheOptions) -> bool:
        return bool(_first(options.evict_on_error, policy_evict_on_error(self._policy),
                           getattr(self._cache, "evict_on_error", None)))

    async def _evict_after_error(self, key: str, error: Exception) -> None:
        # The fetch error is what the caller sees; a failing delete rides along on it
        try:
            evicted = await resolve(self._cache.delete(key))
        except Exception as exc:
            error.add_note(f"cache eviction failed: {type(exc).__name__}: {exc}")
        else:
            logger.debug("cache evicted after error (found=%s)", evicted)

    async def evict(self, params: Params | None = None, init: Init | None = None,
                    cache_options: CacheOptions | dict[str, Any] | None = None) -> str | None:
        """Clear every entry under the eviction key. Returns the key, or None for a blank one."""
        key = self._eviction_key if self._eviction_key is not None else self._key
        if not key:
            return None
        resolved = key(params, init, to_cache_options(cache_options)) if callable(key) else key
        if not resolved.strip():
            return None
        await resolve(self._cache.clear(resolved))
        logger.debug("cache cleared by prefix (%d chars)", len(resolved))
        return resolved


def cached_function(fn: EndpointCall, *, key: str | KeyFunction, cache: CacheStore,
                    eviction_key: str | KeyFunction | None = None,
                    retention: CachePolicy | None = None, on_hit: HitHook | None = None) -> CachedCall[Any]:
    """Wrap `fn` with read-through caching in `cache`."""
    return CachedCall(fn, key=key, cache=cache, eviction_key=eviction_key, retention=retention, on_hit=on_hit)
