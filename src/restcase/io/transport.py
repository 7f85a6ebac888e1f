"""Fetch primitive: turns a request descriptor into a cancellable HTTP call.

The client only depends on the `Fetcher` protocol; `HttpxFetcher` is the
default implementation on top of `httpx.AsyncClient`. Transport errors
(`httpx.TimeoutException`, `httpx.NetworkError`, ...) propagate unchanged.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx

from ..core.body import FormData
from ..foundation.types import ApiHeader, Init
from ..runtime.cancellable import CancellablePromise
from .response import TypedResponse

if TYPE_CHECKING:
    from ..foundation.config import HttpSettings

logger = logging.getLogger("restcase.transport")


@runtime_checkable
class Fetcher(Protocol):
    """Anything that can dispatch ``(input, init)`` and hand back a cancellable response."""

    def fetch(self, input: str, init: Init) -> CancellablePromise[Any]: ...  # noqa: A002


class HttpxFetcher:
    """Fetcher backed by a lazily created `httpx.AsyncClient`.

    Recognised init keys: ``method``, ``headers``, ``body`` (str, bytes,
    FormData, or a dict sent as JSON) and ``timeout`` (seconds). Other keys are
    ignored. Cancelling the returned promise cancels the request task.

    Args:
        client: Client to use instead of creating one (not closed by `aclose`)
        settings: HTTP defaults for the created client (global settings when omitted)
    """

    __slots__ = ("_client", "_owns_client", "_settings")

    def __init__(self, client: httpx.AsyncClient | None = None, settings: HttpSettings | None = None) -> None:
        self._client = client
        self._owns_client = client is None
        self._settings = settings

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            if (settings := self._settings) is None:
                from ..foundation.config import get_settings
                settings = get_settings().http
            self._client = httpx.AsyncClient(
                follow_redirects=settings.follow_redirects,
                verify=settings.verify_ssl,
                timeout=settings.timeout,
                headers={ApiHeader.USER_AGENT: settings.user_agent},
            )
        return self._client

    async def aclose(self) -> None:
        """Close the client this fetcher created."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpxFetcher:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    def fetch(self, input: str, init: Init) -> CancellablePromise[TypedResponse]:  # noqa: A002
        return CancellablePromise(self._send(input, dict(init)))

    async def _send(self, url: str, init: Init) -> TypedResponse:
        method = str(init.get("method", "GET"))
        headers = dict(init.get("headers") or {})
        kwargs: dict[str, Any] = {}

        match init.get("body"):
            case None:
                pass
            case FormData() as form:
                # httpx writes the multipart boundary itself
                headers = {k: v for k, v in headers.items() if k.lower() != ApiHeader.CONTENT_TYPE.lower()}
                kwargs["files"] = [(name, (None, value)) for name, value in form.fields]
            case str() | bytes() as content:
                kwargs["content"] = content
            case body:
                kwargs["json"] = body
        if (timeout := init.get("timeout")) is not None:
            kwargs["timeout"] = timeout

        start = time.perf_counter()
        response = await self._get_client().request(method, url, headers=headers, **kwargs)
        logger.debug("%s %s -> %d in %.1fms (%s)", method, url, response.status_code,
                     (time.perf_counter() - start) * 1000, response.headers.get(ApiHeader.CONTENT_TYPE, "-"))
        return TypedResponse.from_response(response)
