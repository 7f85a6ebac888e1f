"""Tests for the client request pipeline, hooks, and observers."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest

from restcase import (
    AbortError,
    ApiError,
    BaseClient,
    BoundEndpoint,
    ClientHooks,
    ClientSettings,
    EndpointTemplate,
    ExpiredTokenError,
    MemoryCacheStore,
    MissingParameterError,
    ParameterValidationError,
    QueryEvent,
    RateLimitError,
    RequestDescriptor,
    Transformed,
    raise_for_response,
)
from restcase.io.cache.entry import CacheEntry, now_ms
from restcase.testing import MockFetcher, MockResponse

from conftest import ENDPOINT, JSON_HEADERS, MOVIE_PARAMS, json_headers, make_api, movie_template

MOVIE_URL = f"{ENDPOINT}/movies/requiredPath/popular?requiredQuery=requiredQuery"


def make_client(fetcher: MockFetcher, api: dict[str, Any] | None = None, *,
                settings: ClientSettings | None = None, **hooks: Any) -> BaseClient[dict[str, Any]]:
    return BaseClient(
        settings or ClientSettings(endpoint=ENDPOINT),
        api=api if api is not None else make_api(),
        fetcher=fetcher,
        hooks=ClientHooks(**{"parse_headers": json_headers, **hooks}),
    )


def test_has_every_endpoint(client: BaseClient[Any]) -> None:
    """Every template is reachable on the client with its nesting."""
    for name in make_api():
        assert name in client.api
    assert isinstance(client.movies, BoundEndpoint)
    assert isinstance(client.nested.search, BoundEndpoint)
    assert client.api.nested.search is client.nested.search


def test_unknown_attribute(client: BaseClient[Any]) -> None:
    with pytest.raises(AttributeError, match="unknown"):
        _ = client.unknown


# ─────────────────────────────────────────────────────────────────────────────
# Dispatch
# ─────────────────────────────────────────────────────────────────────────────


class TestDispatch:
    """Request descriptor built from template, params, and init."""

    @pytest.mark.asyncio
    async def test_post_with_body(self, client: BaseClient[Any], fetcher: MockFetcher) -> None:
        """URL, method, headers, and JSON body reach the fetcher."""
        response = await client.movies(MOVIE_PARAMS)

        assert fetcher.call_count == 1
        assert fetcher.last_request == RequestDescriptor(
            MOVIE_URL,
            {"method": "POST", "headers": JSON_HEADERS, "body": '{"requiredBody":"requiredBody"}'},
        )
        assert response.json() == {"ok": True}
        assert response.cache is None

    @pytest.mark.asyncio
    async def test_get_has_no_body(self, client: BaseClient[Any], fetcher: MockFetcher) -> None:
        await client.endpoint()
        assert fetcher.last_request == RequestDescriptor(
            f"{ENDPOINT}/endpoint", {"method": "GET", "headers": JSON_HEADERS},
        )

    @pytest.mark.asyncio
    async def test_empty_body_schema_sends_empty_object(self, fetcher: MockFetcher) -> None:
        client = make_client(fetcher, {"touch": EndpointTemplate(method="POST", url="/touch", body={})})
        await client.touch({"ignored": 1})
        assert fetcher.last_request.body == "{}"

        await client.touch()
        assert fetcher.last_request.body == "{}"

    @pytest.mark.asyncio
    async def test_header_priority(self, fetcher: MockFetcher) -> None:
        """Template headers < hook headers < call headers."""
        template = EndpointTemplate(
            method="GET", url="/endpoint", init={"headers": {"X-Template": "t", "X-Shared": "template"}},
        )
        client = make_client(fetcher, {"endpoint": template},
                             parse_headers=lambda t, p: {"X-Hook": "h", "X-Shared": "hook"})

        await client.endpoint(None, {"headers": {"X-Call": "c"}})
        assert fetcher.last_request.headers == {"X-Template": "t", "X-Shared": "hook", "X-Hook": "h", "X-Call": "c"}

        await client.endpoint(None, {"headers": {"X-Shared": "call"}})
        assert fetcher.last_request.headers["X-Shared"] == "call"

    @pytest.mark.asyncio
    async def test_init_overrides_template_init(self, fetcher: MockFetcher) -> None:
        template = EndpointTemplate(method="GET", url="/endpoint", init={"timeout": 5, "credentials": "omit"})
        client = make_client(fetcher, {"endpoint": template})
        await client.endpoint(None, {"timeout": 1})
        assert fetcher.last_request.init["timeout"] == 1
        assert fetcher.last_request.init["credentials"] == "omit"

    @pytest.mark.asyncio
    async def test_body_uses_call_content_type(self, client: BaseClient[Any], fetcher: MockFetcher) -> None:
        """A form Content-Type selects the url-encoded body."""
        await client.movies(MOVIE_PARAMS, {"headers": {"Content-Type": "application/x-www-form-urlencoded"}})
        assert fetcher.last_request.body == "requiredBody=requiredBody"

    @pytest.mark.asyncio
    async def test_body_from_params_before_template_transform(self, fetcher: MockFetcher) -> None:
        """The URL sees transformed params, the body the merged ones."""
        template = movie_template(
            transform=lambda p: {**{k: v for k, v in p.items() if k != "requiredBody"}, "requiredQuery": "rewritten"},
        )
        client = make_client(fetcher, {"movies": template})
        await client.movies(MOVIE_PARAMS)
        assert fetcher.last_request.input == f"{ENDPOINT}/movies/requiredPath/popular?requiredQuery=rewritten"
        assert fetcher.last_request.body == '{"requiredBody":"requiredBody"}'

    @pytest.mark.asyncio
    async def test_seed(self, fetcher: MockFetcher) -> None:
        client = make_client(fetcher, {"movies": movie_template(seed={"requiredQuery": "seeded"})})
        params = {k: v for k, v in MOVIE_PARAMS.items() if k != "requiredQuery"}
        await client.movies(params)
        assert fetcher.last_request.input == f"{ENDPOINT}/movies/requiredPath/popular?requiredQuery=seeded"

    @pytest.mark.asyncio
    async def test_missing_parameter_raises_before_dispatch(self, client: BaseClient[Any], fetcher: MockFetcher) -> None:
        with pytest.raises(MissingParameterError, match="requiredBody"):
            client.movies({**MOVIE_PARAMS, "requiredBody": None})
        assert fetcher.call_count == 0

    @pytest.mark.asyncio
    async def test_validation_raises_before_dispatch(self, fetcher: MockFetcher) -> None:
        template = EndpointTemplate(method="GET", url="/endpoint", validate=lambda p: p.get("ok"))
        client = make_client(fetcher, {"endpoint": template})
        with pytest.raises(ParameterValidationError):
            client.endpoint({"ok": False})
        assert fetcher.call_count == 0
        await client.endpoint({"ok": True})
        assert fetcher.call_count == 1

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, client: BaseClient[Any], fetcher: MockFetcher) -> None:
        error = httpx.ConnectError("refused")
        fetcher.default = error
        with pytest.raises(httpx.ConnectError) as exc_info:
            await client.endpoint()
        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_cancel(self, client: BaseClient[Any], fetcher: MockFetcher) -> None:
        """Cancelling an in-flight call aborts the fetch once and rejects with AbortError."""
        fetcher.delay_ms = 1000
        call = client.endpoint()
        await asyncio.sleep(0)

        assert call.cancel()
        with pytest.raises(AbortError, match="The operation was aborted."):
            await call
        assert fetcher.call_count == 1
        assert fetcher.cancel_count == 1
        assert not call.cancel()

    @pytest.mark.asyncio
    async def test_resolve_url_does_not_dispatch(self, client: BaseClient[Any], fetcher: MockFetcher) -> None:
        url = client.nested.search.resolve({"kind": "movie", "query": "dune"})
        assert str(url) == f"{ENDPOINT}/search/movie?query=dune&page=1"
        assert fetcher.call_count == 0


# ─────────────────────────────────────────────────────────────────────────────
# Hooks
# ─────────────────────────────────────────────────────────────────────────────


class TestHooks:
    """Pluggable pipeline strategies."""

    @pytest.mark.asyncio
    async def test_transform_hook(self, fetcher: MockFetcher) -> None:
        """The client-level transform replaces params and init before resolution."""
        def transform(template: EndpointTemplate, params: dict[str, Any], init: Any) -> Transformed:
            return Transformed(params={**params, "requiredQuery": "hooked"}, init={"headers": {"X-Hook": "1"}})

        client = make_client(fetcher, transform=transform)
        await client.movies(MOVIE_PARAMS)
        assert fetcher.last_request.input.endswith("?requiredQuery=hooked")
        assert fetcher.last_request.headers["X-Hook"] == "1"

    @pytest.mark.asyncio
    async def test_parse_url(self, fetcher: MockFetcher) -> None:
        seen: list[str] = []

        def parse_url(template: EndpointTemplate, params: dict[str, Any], base: str) -> str:
            seen.append(base)
            return f"https://other.url{template.url}"

        client = make_client(fetcher, parse_url=parse_url)
        await client.endpoint()
        assert seen == [ENDPOINT]
        assert fetcher.last_request.input == "https://other.url/endpoint"

    @pytest.mark.asyncio
    async def test_parse_body(self, fetcher: MockFetcher) -> None:
        client = make_client(fetcher, parse_body=lambda schema, params, request: {"keys": sorted(schema)})
        await client.movies(MOVIE_PARAMS)
        assert fetcher.last_request.body == {"keys": ["optionalBody", "requiredBody"]}

    @pytest.mark.asyncio
    async def test_parse_response(self, fetcher: MockFetcher) -> None:
        """The hook gets the response with request and template context."""
        seen: list[tuple[Any, ...]] = []

        def parse_response(response: httpx.Response, request: RequestDescriptor, template: EndpointTemplate) -> Any:
            seen.append((request.input, template.url))
            return response.json()

        client = make_client(fetcher, parse_response=parse_response)
        assert await client.endpoint() == {"ok": True}
        assert seen == [(f"{ENDPOINT}/endpoint", "/endpoint")]

    @pytest.mark.asyncio
    async def test_async_parse_response(self, fetcher: MockFetcher) -> None:
        async def parse_response(response: httpx.Response, *_: Any) -> Any:
            await asyncio.sleep(0)
            return response.status_code

        client = make_client(fetcher, parse_response=parse_response)
        assert await client.endpoint() == 200

    @pytest.mark.asyncio
    async def test_parse_response_returning_none_keeps_response(self, fetcher: MockFetcher) -> None:
        client = make_client(fetcher, parse_response=lambda *_: None)
        response = await client.endpoint()
        assert response.status_code == 200


class TestRaiseForResponse:
    """Non-success statuses mapped to exceptions."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "error"),
        [(429, RateLimitError), (401, ExpiredTokenError), (500, ApiError), (404, ApiError)],
    )
    async def test_status_mapping(self, fetcher: MockFetcher, status: int, error: type[ApiError]) -> None:
        fetcher.default = MockResponse(status=status)
        client = make_client(fetcher, parse_response=raise_for_response)
        with pytest.raises(error) as exc_info:
            await client.endpoint()
        assert exc_info.value.status_code == status
        assert "GET https://api-endpoint.url/endpoint" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_success_passes_through(self, fetcher: MockFetcher) -> None:
        client = make_client(fetcher, parse_response=raise_for_response)
        assert (await client.endpoint()).status_code == 200

    def test_error_model(self) -> None:
        response = httpx.Response(429, request=httpx.Request("GET", ENDPOINT))
        with pytest.raises(RateLimitError) as exc_info:
            raise_for_response(response)
        error = exc_info.value.to_error()
        assert error.recoverable
        assert error.is_retryable
        assert error.details == {"status_code": 429}


# ─────────────────────────────────────────────────────────────────────────────
# Observers
# ─────────────────────────────────────────────────────────────────────────────


class TestObservers:
    """Call and authentication observers."""

    @pytest.mark.asyncio
    async def test_call_observer(self, client: BaseClient[Any]) -> None:
        """Observers get the request and the pending promise synchronously."""
        events: list[QueryEvent[Any]] = []
        unsubscribe = client.on_call(events.append)

        call = client.endpoint()
        assert len(events) == 1
        assert events[0].query is call
        assert events[0].request.input == f"{ENDPOINT}/endpoint"
        assert events[0].request.method == "GET"
        await call

        assert unsubscribe()
        await client.endpoint()
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_no_event_for_failed_resolution(self, client: BaseClient[Any]) -> None:
        events: list[QueryEvent[Any]] = []
        client.on_call(events.append)
        with pytest.raises(MissingParameterError):
            client.movies({})
        assert events == []

    def test_auth_observer(self, fetcher: MockFetcher) -> None:
        """Observers receive (new, old); updaters derive from the current state."""
        client = BaseClient(ClientSettings(endpoint=ENDPOINT), api={}, fetcher=fetcher,
                            authentication={"access_token": None})
        changes: list[tuple[Any, Any]] = []
        client.on_auth_change(lambda new, old: changes.append((new, old)))

        client.update_auth({"access_token": "a"})
        client.update_auth(lambda auth: {**auth, "refresh_token": "r"})

        assert client.auth == {"access_token": "a", "refresh_token": "r"}
        assert changes == [
            ({"access_token": "a"}, {"access_token": None}),
            ({"access_token": "a", "refresh_token": "r"}, {"access_token": "a"}),
        ]

    def test_unsubscribe_all(self, client: BaseClient[Any]) -> None:
        observer = lambda *_: None  # noqa: E731
        client.on_call(observer)
        assert client.unsubscribe(observer) == {"auth": False, "call": True}

        client.on_auth_change(observer)
        client.on_call(lambda *_: None)
        assert client.unsubscribe() == {"auth": True, "call": True}
        assert client.unsubscribe() == {"auth": False, "call": False}


# ─────────────────────────────────────────────────────────────────────────────
# Settings & cache management
# ─────────────────────────────────────────────────────────────────────────────


class TestSettings:
    """Endpoint, CORS proxy, and CORS prefix."""

    @pytest.mark.asyncio
    async def test_cors_proxy_replaces_endpoint(self, fetcher: MockFetcher) -> None:
        settings = ClientSettings(endpoint=ENDPOINT, cors_proxy="https://proxy.url")
        client = make_client(fetcher, settings=settings)
        assert client.settings.endpoint == "https://proxy.url"
        await client.endpoint()
        assert fetcher.last_request.input == "https://proxy.url/endpoint"

    @pytest.mark.asyncio
    async def test_cors_prefix_injected_once(self, fetcher: MockFetcher) -> None:
        settings = ClientSettings(endpoint=ENDPOINT, cors_prefix="relay")
        client = make_client(fetcher, settings=settings)
        assert client.endpoint.url == "/relay/endpoint"

        await client.endpoint()
        await client.endpoint()
        assert fetcher.requests[-1].input == f"{ENDPOINT}/relay/endpoint"
        assert client.endpoint.url == "/relay/endpoint"

    @pytest.mark.asyncio
    async def test_async_context_manager(self, fetcher: MockFetcher) -> None:
        async with make_client(fetcher) as client:
            await client.endpoint()
        assert fetcher.call_count == 1


class TestClearCache:
    """Delete one key, clear by prefix, or clear everything."""

    @staticmethod
    def _fill(store: MemoryCacheStore, *keys: str) -> None:
        for key in keys:
            store.set(key, CacheEntry(key=key, value=None, cached_at=now_ms()))

    @pytest.mark.asyncio
    async def test_exact_key(self, client: BaseClient[Any], store: MemoryCacheStore) -> None:
        self._fill(store, "key", "key-2")
        assert await client.clear_cache("key") is True
        assert store.keys() == ["key-2"]

    @pytest.mark.asyncio
    async def test_prefix(self, client: BaseClient[Any], store: MemoryCacheStore) -> None:
        self._fill(store, "key-1", "key-2", "other")
        await client.clear_cache("key", exact=False)
        assert store.keys() == ["other"]

    @pytest.mark.asyncio
    async def test_everything(self, client: BaseClient[Any], store: MemoryCacheStore) -> None:
        self._fill(store, "key-1", "other")
        await client.clear_cache()
        assert len(store) == 0
