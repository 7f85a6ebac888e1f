"""Shared fixtures: a movies API, a scripted fetcher, and a client wired to both."""

from __future__ import annotations

from typing import Any

import pytest

from restcase import BaseClient, ClientHooks, ClientSettings, EndpointTemplate, MemoryCacheStore
from restcase.foundation.config import clear_settings_cache
from restcase.testing import MockFetcher

ENDPOINT = "https://api-endpoint.url"
JSON_HEADERS = {"Content-Type": "application/json"}


def movie_template(**overrides: Any) -> EndpointTemplate:
    """POST template with one mandatory and one optional parameter per position."""
    fields: dict[str, Any] = {
        "method": "POST",
        "url": "/movies/:requiredPath/:optionalPath/popular?requiredQuery=&optionalQuery=",
        "opts": {
            "parameters": {
                "query": {"requiredQuery": True, "optionalQuery": False},
                "path": {"requiredPath": True, "optionalPath": False},
            },
        },
        "body": {"requiredBody": True, "optionalBody": False},
    }
    return EndpointTemplate(**{**fields, **overrides})


MOVIE_PARAMS = {
    "requiredQuery": "requiredQuery",
    "requiredPath": "requiredPath",
    "requiredBody": "requiredBody",
}


def make_api() -> dict[str, Any]:
    """Fresh template tree; templates are mutated by CORS prefix injection."""
    return {
        "movies": movie_template(),
        "endpoint": EndpointTemplate(method="GET", url="/endpoint", opts={"cache": False}),
        "with_cache": EndpointTemplate(method="GET", url="/endpoint-with-cache"),
        "with_retention": EndpointTemplate(method="GET", url="/endpoint-with-cache-retention", opts={"cache": 20}),
        "with_cache_object": EndpointTemplate(
            method="GET", url="/endpoint-with-cache-object", opts={"cache": {"retention": 20, "evict_on_error": True}},
        ),
        "with_evict_on_error": EndpointTemplate(
            method="GET", url="/endpoint-with-evict-on-error", opts={"cache": {"evict_on_error": True}},
        ),
        "nested": {
            "search": EndpointTemplate(
                method="GET",
                url="/search/:kind?query=&page=",
                opts={"parameters": {"path": {"kind": True}, "query": {"query": True, "page": False}}},
                seed={"page": 1},
            ),
        },
    }


def json_headers(*_: Any) -> dict[str, str]:
    return dict(JSON_HEADERS)


@pytest.fixture(autouse=True)
def fresh_settings() -> object:
    """Reload global settings around each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def fetcher() -> MockFetcher:
    return MockFetcher()


@pytest.fixture
def store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def client(fetcher: MockFetcher, store: MemoryCacheStore) -> BaseClient[dict[str, Any]]:
    return BaseClient(
        ClientSettings(endpoint=ENDPOINT),
        api=make_api(),
        fetcher=fetcher,
        cache_store=store,
        hooks=ClientHooks(parse_headers=json_headers),
    )
