"""Response caching: stores, cache records, and the cached-call wrapper."""

from .decorator import CachedCall, cached_function
from .entry import CacheEntry, CacheInfo, CacheOptions, CacheRetention
from .keys import cache_key, eviction_key
from .store import CacheStore, MemoryCacheStore

__all__ = [
    "CacheEntry", "CacheInfo", "CacheOptions", "CacheRetention",
    "CacheStore", "MemoryCacheStore",
    "CachedCall", "cached_function",
    "cache_key", "eviction_key",
]
