"""Test doubles for clients: a scripted fetch primitive.

Provides:
- MockResponse: declarative response (status, JSON or text body, headers, delay)
- MockFetcher: `Fetcher` that records requests, serves scripted responses,
  and counts cancellations it receives
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from .core.request import RequestDescriptor
from .foundation.types import Init, JsonValue
from .io.response import TypedResponse
from .runtime.cancellable import CancellablePromise


@dataclass
class MockResponse:
    """Simulated HTTP response."""

    status: int = 200
    data: JsonValue = None
    headers: dict[str, str] = field(default_factory=dict)
    delay_ms: float = 0

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def to_response(self, method: str, url: str) -> TypedResponse:
        """Fresh, fully read response bound to a request for `url`."""
        request = httpx.Request(method, url)
        match self.data:
            case None:
                return TypedResponse(self.status, headers=self.headers, request=request)
            case str(text):
                return TypedResponse(self.status, headers=self.headers, text=text, request=request)
            case data:
                return TypedResponse(self.status, headers=self.headers, json=data, request=request)


Scripted = MockResponse | JsonValue | BaseException
Responder = Callable[[RequestDescriptor], Scripted]


@dataclass
class MockFetcher:
    """Simulated fetch primitive for client tests.

    Responses are looked up by exact URL, then by ``prefix*`` pattern, then
    fall back to `default`. An exception as a response is raised by the call;
    a `responder` callable takes precedence over the table.

    Example:
        >>> fetcher = MockFetcher(responses={"https://api.test/movies*": {"results": []}})
        >>> client = BaseClient(settings, api=api, fetcher=fetcher)
        >>> await client.movies.popular()
        >>> assert fetcher.call_count == 1
        >>> assert fetcher.last_request.method == "GET"
    """

    responses: dict[str, Scripted] = field(default_factory=dict)
    default: Scripted = field(default_factory=lambda: MockResponse(data={"ok": True}))
    delay_ms: float = 0
    responder: Responder | None = None
    requests: list[RequestDescriptor] = field(default_factory=list)
    cancellations: list[object] = field(default_factory=list)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    @property
    def last_request(self) -> RequestDescriptor | None:
        return self.requests[-1] if self.requests else None

    @property
    def cancel_count(self) -> int:
        """Number of cancellation signals received by dispatched calls."""
        return len(self.cancellations)

    def reset(self) -> None:
        self.requests.clear()
        self.cancellations.clear()

    def fetch(self, input: str, init: Init) -> CancellablePromise[Any]:  # noqa: A002
        request = RequestDescriptor(input, dict(init))
        self.requests.append(request)
        promise = CancellablePromise(self._respond(request))
        promise.signal.add_listener(self.cancellations.append)
        return promise

    def _lookup(self, request: RequestDescriptor) -> Scripted:
        if self.responder is not None:
            return self.responder(request)
        if request.input in self.responses:
            return self.responses[request.input]
        for pattern, scripted in self.responses.items():
            if pattern.endswith("*") and request.input.startswith(pattern[:-1]):
                return scripted
        return self.default

    async def _respond(self, request: RequestDescriptor) -> TypedResponse:
        scripted = self._lookup(request)
        delay = max(self.delay_ms, scripted.delay_ms if isinstance(scripted, MockResponse) else 0)
        if delay > 0:
            await asyncio.sleep(delay / 1000)
        match scripted:
            case BaseException():
                raise scripted
            case MockResponse():
                return scripted.to_response(request.method, request.input)
            case data:
                return MockResponse(data=data).to_response(request.method, request.input)
