"""IO - transport, typed responses, and response caching."""

from .cache import CacheEntry, CacheInfo, CacheOptions, CacheRetention, CacheStore, MemoryCacheStore, cached_function
from .response import TypedResponse
from .transport import Fetcher, HttpxFetcher

__all__ = [
    "Fetcher", "HttpxFetcher", "TypedResponse",
    "CacheEntry", "CacheInfo", "CacheOptions", "CacheRetention", "CacheStore", "MemoryCacheStore", "cached_function",
]
