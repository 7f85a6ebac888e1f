"""Base client: binds an API of endpoint templates and runs the request pipeline.

Each call goes through parameter resolution, URL/header/body construction,
dispatch via the fetcher, optional response post-processing, and a `QueryEvent`
emitted to call observers while the request is still in flight. Cached calls
served from the store emit the same event, built without dispatching.

Example:
    >>> api = {
    ...     "movies": {
    ...         "popular": EndpointTemplate(method="GET", url="/movies/popular?page=", opts={"cache": CacheRetention.HOUR}),
    ...     },
    ... }
    >>> client = BaseClient(ClientSettings(endpoint="https://api.example.com"), api=api)
    >>> response = await client.movies.popular({"page": 2})
    >>> cached = await client.movies.popular.cached({"page": 2})
    >>> cached.cache.is_cache
    True
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx

from .core.binder import ApiTree, Branch, BoundApi, BoundEndpoint, bind_api
from .core.body import BodySchema, build_body, content_type_of
from .core.params import TransformHook, apply_transform, merge_parameters, resolve_parameters
from .core.request import QueryEvent, RequestDescriptor
from .core.template import EndpointTemplate
from .core.url import build_url, inject_cors_prefix
from .foundation.config import ClientSettings, RestcaseSettings, get_settings
from .foundation.errors import ApiError, ExpiredTokenError, RateLimitError
from .foundation.types import HttpMethod, Init, Params
from .io.cache.decorator import CachedCall, EndpointCall, cached_function
from .io.cache.keys import cache_key, eviction_key
from .io.cache.store import CacheStore, MemoryCacheStore, resolve
from .io.transport import Fetcher, HttpxFetcher
from .runtime.cancellable import CancellablePromise
from .runtime.observable import Observable, ObservableState, Observer, Unsubscribe, Updater

logger = logging.getLogger("restcase.client")

A = TypeVar("A", bound=Mapping[str, Any])

ParseHeaders = Callable[[EndpointTemplate, Params], Mapping[str, str]]
ParseUrl = Callable[[EndpointTemplate, Params, str], "httpx.URL | str"]
ParseBody = Callable[[BodySchema, Params, RequestDescriptor], Any]
ParseResponse = Callable[[Any, RequestDescriptor, EndpointTemplate], Any]


@dataclass(frozen=True, slots=True)
class ClientHooks:
    """Optional strategies plugged into the request pipeline.

    Attributes:
        transform: Replace template, params, or init before resolution (see `Transformed`)
        parse_headers: Headers computed per call, merged between template and call headers
        parse_url: Build the URL instead of `build_url`; receives the base endpoint
        parse_body: Encode the body instead of `build_body`
        parse_response: Post-process successful responses; returning None keeps the response
    """

    transform: TransformHook | None = None
    parse_headers: ParseHeaders | None = None
    parse_url: ParseUrl | None = None
    parse_body: ParseBody | None = None
    parse_response: ParseResponse | None = None


def raise_for_response(response: httpx.Response, request: RequestDescriptor | None = None,
                       template: EndpointTemplate | None = None) -> httpx.Response:
    """`parse_response` hook turning non-2xx responses into exceptions.

    Raises:
        RateLimitError: 429
        ExpiredTokenError: 401
        ApiError: any other non-success status
    """
    if response.is_success:
        return response
    target = f"{request.method} {request.input}" if request is not None else str(response.request.url)
    message = f"{target} failed with {response.status_code} {response.reason_phrase}".rstrip()
    match response.status_code:
        case httpx.codes.TOO_MANY_REQUESTS:
            raise RateLimitError(message, response)
        case httpx.codes.UNAUTHORIZED:
            raise ExpiredTokenError(message, response)
        case _:
            raise ApiError(message, response)


class BaseClient(Generic[A]):
    """Client over a tree of endpoint templates.

    Bound endpoints are reachable through `api` and directly as client
    attributes (``client.movies.popular``).

    Args:
        settings: Client settings, or root settings (global settings when omitted)
        authentication: Initial authentication state
        api: Nested mapping of endpoint templates (or an `ApiTree`)
        cache_store: Store for cached endpoints (memory store from cache settings by default)
        fetcher: Fetch primitive (httpx by default)
        hooks: Pipeline strategies
    """

    def __init__(
        self,
        settings: ClientSettings | RestcaseSettings | None = None,
        *,
        authentication: A | None = None,
        api: Mapping[str, Any] | Branch | None = None,
        cache_store: CacheStore | None = None,
        fetcher: Fetcher | None = None,
        hooks: ClientHooks | None = None,
    ) -> None:
        root = settings if isinstance(settings, RestcaseSettings) else get_settings()
        self._settings: ClientSettings = settings if isinstance(settings, ClientSettings) else root.client
        self._cache: CacheStore = cache_store if cache_store is not None else MemoryCacheStore(
            retention=root.cache.retention, evict_on_error=root.cache.evict_on_error, max_entries=root.cache.max_entries,
        )
        self._fetcher: Fetcher = fetcher if fetcher is not None else HttpxFetcher(settings=root.http)
        self._hooks = hooks or ClientHooks()
        self._authentication: ObservableState[A] = ObservableState(authentication if authentication is not None else {})  # type: ignore[arg-type]
        self._call_listeners: Observable[QueryEvent[Any]] = Observable()
        self._api = self._bind(api or {})

    # ─────────────────────────────────────────────────────────────────
    # Settings & state
    # ─────────────────────────────────────────────────────────────────

    @property
    def settings(self) -> ClientSettings:
        """Client settings; with a CORS proxy configured it replaces the endpoint."""
        if self._settings.cors_proxy:
            return self._settings.model_copy(update={"endpoint": self._settings.cors_proxy})
        return self._settings

    @property
    def api(self) -> BoundApi:
        return self._api

    @property
    def cache(self) -> CacheStore:
        return self._cache

    @property
    def hooks(self) -> ClientHooks:
        return self._hooks

    @property
    def auth(self) -> A:
        return self._authentication.state

    def update_auth(self, auth: A | Updater[A]) -> None:
        """Replace the authentication state (or derive it from the current one)."""
        self._authentication.update(auth)

    def on_auth_change(self, observer: Observer) -> Unsubscribe:
        """Subscribe to authentication changes; observers get ``(new, old)``."""
        return self._authentication.subscribe(observer)

    def on_call(self, observer: Observer) -> Unsubscribe:
        """Subscribe to dispatched calls; observers get a `QueryEvent` per request."""
        return self._call_listeners.subscribe(observer)

    def unsubscribe(self, observer: Observer | None = None) -> dict[str, bool]:
        """Remove `observer` (or every observer) from auth and call listeners."""
        return {
            "auth": self._authentication.unsubscribe(observer),
            "call": self._call_listeners.unsubscribe(observer),
        }

    async def clear_cache(self, key: str | None = None, exact: bool = True) -> bool | None:
        """Delete the entry under `key`, or clear by prefix when not `exact` (everything without a key)."""
        if key and exact:
            return await resolve(self._cache.delete(key))
        await resolve(self._cache.clear(key))
        return None

    async def aclose(self) -> None:
        if (aclose := getattr(self._fetcher, "aclose", None)) is not None:
            await aclose()

    async def __aenter__(self) -> BaseClient[A]:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    def __getattr__(self, name: str) -> BoundEndpoint | BoundApi:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._api[name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}") from None

    # ─────────────────────────────────────────────────────────────────
    # Binding
    # ─────────────────────────────────────────────────────────────────

    def _bind(self, api: Mapping[str, Any] | Branch) -> BoundApi:
        tree = api if isinstance(api, Branch) else ApiTree.of(api)
        for template in tree.templates():
            inject_cors_prefix(template, self._settings, mutate=True)
        return bind_api(tree, call=self._call, resolve=self.resolve_url, cache_factory=self._cached_call)

    def _cached_call(self, template: EndpointTemplate, fn: EndpointCall) -> CachedCall[Any]:
        def key(params: Params | None, init: Init | None, _options: object) -> str:
            tpl, prm, ini = apply_transform(template, dict(params or {}), init, self._hooks.transform)
            _, effective = merge_parameters(tpl, prm)
            return cache_key(template.config, effective, ini)

        def on_hit(params: Params | None, init: Init | None, query: CancellablePromise[Any]) -> None:
            _, request = self._prepare(template, params, init)
            logger.debug("served from cache %s %s", request.method, request.input)
            self._call_listeners.update(QueryEvent(request, query))

        return cached_function(
            fn,
            key=key,
            cache=self._cache,
            eviction_key=lambda *_: eviction_key(template.config),
            retention=template.options.cache,
            on_hit=on_hit,
        )

    # ─────────────────────────────────────────────────────────────────
    # Pipeline
    # ─────────────────────────────────────────────────────────────────

    def resolve_url(self, template: EndpointTemplate, params: Params | None = None) -> httpx.URL:
        """URL a call would hit, after transform, seed and validation, without dispatching."""
        resolved = resolve_parameters(template, params, None, self._hooks.transform)
        return self._parse_url(resolved.template, resolved.params)

    def _call(self, template: EndpointTemplate, params: Params | None = None,
              init: Init | None = None) -> CancellablePromise[Any]:
        """Dispatch one request for `template`.

        Resolution errors (validation, missing parameters) raise here, before
        anything is sent. The returned promise is still pending; observers have
        already been notified.
        """
        tpl, request = self._prepare(template, params, init)
        query = self._fetcher.fetch(request.input, request.init).then(
            lambda response: self._parse_response(response, request, tpl)
        )
        logger.debug("dispatched %s %s", request.method, request.input)
        self._call_listeners.update(QueryEvent(request, query))
        return query

    def _prepare(self, template: EndpointTemplate, params: Params | None,
                 init: Init | None) -> tuple[EndpointTemplate, RequestDescriptor]:
        resolved = resolve_parameters(template, params, init, self._hooks.transform)
        tpl, call_init = resolved.template, resolved.init or {}

        headers = {
            **(tpl.init.get("headers") or {}),
            **(self._hooks.parse_headers(tpl, resolved.params) if self._hooks.parse_headers else {}),
            **(call_init.get("headers") or {}),
        }
        request = RequestDescriptor(
            input=str(self._parse_url(tpl, resolved.params)),
            init={**tpl.init, **call_init, "method": str(tpl.method), "headers": headers},
        )
        if tpl.method != HttpMethod.GET and tpl.body is not None:
            request.init["body"] = self._parse_body(tpl.body, resolved.merged, request)
        return tpl, request

    def _parse_url(self, template: EndpointTemplate, params: Params) -> httpx.URL:
        inject_cors_prefix(template, self._settings, mutate=True)
        base = self.settings.endpoint
        if self._hooks.parse_url is not None:
            return httpx.URL(str(self._hooks.parse_url(template, params, base)))
        return build_url(template, params, base)

    def _parse_body(self, body: BodySchema, params: Params, request: RequestDescriptor) -> Any:
        if self._hooks.parse_body is not None:
            return self._hooks.parse_body(body, params, request)
        return build_body(body, params, content_type_of(request.headers))

    async def _parse_response(self, response: Any, request: RequestDescriptor, template: EndpointTemplate) -> Any:
        if self._hooks.parse_response is None:
            return response
        parsed = self._hooks.parse_response(response, request, template)
        if inspect.isawaitable(parsed):
            parsed = await parsed
        return response if parsed is None else parsed

