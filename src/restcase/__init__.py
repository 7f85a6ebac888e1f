"""restcase - Declarative, cached REST clients built from endpoint templates.

Describe each endpoint once as a template, bind a tree of templates to a
client, and call them like functions. Calls return cancellable promises;
endpoints that opt into caching also expose a read-through `cached` variant.

Quick Start:
    >>> from restcase import BaseClient, ClientSettings, EndpointTemplate
    >>>
    >>> api = {
    ...     "movies": {
    ...         "popular": EndpointTemplate(
    ...             method="GET",
    ...             url="/movies/:category/popular?page=",
    ...             opts={"cache": 60_000, "parameters": {"path": {"category": True}}},
    ...             seed={"page": 1},
    ...         ),
    ...     },
    ... }
    >>> client = BaseClient(ClientSettings(endpoint="https://api.example.com"), api=api)
    >>>
    >>> response = await client.movies.popular({"category": "drama"})
    >>> response.json()

Caching:
    >>> first = await client.movies.popular.cached({"category": "drama"})
    >>> again = await client.movies.popular.cached({"category": "drama"})
    >>> again.cache.is_cache
    True
    >>> await client.movies.popular.cached.evict()  # every cached page of this endpoint

Cancellation:
    >>> call = client.movies.popular({"category": "drama"})
    >>> call.cancel()
    >>> await call  # raises AbortError

Observers:
    >>> client.on_call(lambda event: print(event.request.input))
    >>> log_calls(client)  # structured telemetry for every call
"""

from .client import BaseClient, ClientHooks, raise_for_response
from .core import (
    ApiTree,
    BoundApi,
    BoundEndpoint,
    CachedEndpoint,
    CacheOption,
    EndpointTemplate,
    FormData,
    ParameterSchema,
    QueryEvent,
    RequestDescriptor,
    TemplateOptions,
    Transformed,
    build_body,
    build_url,
    resolve_parameters,
)
from .foundation import (
    AbortError,
    ApiError,
    ApiHeader,
    ClientError,
    ClientSettings,
    ContentType,
    ErrorCode,
    ExpiredTokenError,
    HttpMethod,
    MissingParameterError,
    ParameterValidationError,
    RateLimitError,
    RestcaseException,
    RestcaseSettings,
    get_settings,
)
from .io import (
    CacheEntry,
    CacheInfo,
    CacheOptions,
    CacheRetention,
    CacheStore,
    Fetcher,
    HttpxFetcher,
    MemoryCacheStore,
    TypedResponse,
    cached_function,
)
from .runtime import AbortSignal, CancellablePromise, Observable, ObservableState
from .runtime.observability import configure_logging, get_logger, log_calls

__version__ = "0.1.0"

__all__ = [
    # Client
    "BaseClient", "ClientHooks", "raise_for_response",
    # Templates & binding
    "EndpointTemplate", "TemplateOptions", "CacheOption", "ParameterSchema",
    "ApiTree", "BoundApi", "BoundEndpoint", "CachedEndpoint",
    "RequestDescriptor", "QueryEvent", "Transformed", "FormData",
    "resolve_parameters", "build_url", "build_body",
    # Cache
    "CacheEntry", "CacheInfo", "CacheOptions", "CacheRetention", "CacheStore", "MemoryCacheStore",
    "cached_function", "TypedResponse",
    # Transport
    "Fetcher", "HttpxFetcher",
    # Runtime
    "AbortSignal", "CancellablePromise", "Observable", "ObservableState",
    "configure_logging", "get_logger", "log_calls",
    # Foundation
    "HttpMethod", "ApiHeader", "ContentType",
    "RestcaseSettings", "ClientSettings", "get_settings",
    "ErrorCode", "ClientError", "RestcaseException", "MissingParameterError", "ParameterValidationError",
    "AbortError", "ApiError", "RateLimitError", "ExpiredTokenError",
]
