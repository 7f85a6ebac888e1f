"""Call telemetry: structured log lines for every request, cache hits included."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any

from ...foundation.errors import AbortError, ClientError
from .logging import BoundLogger, get_logger

if TYPE_CHECKING:
    from ...client import BaseClient
    from ...core.request import QueryEvent
    from ..cancellable import CancellablePromise
    from ..observable import Unsubscribe


def log_calls(client: BaseClient[Any], log: BoundLogger | None = None) -> Unsubscribe:
    """Log each request the client dispatches and how it settles.

    Example:
        >>> stop = log_calls(client, get_logger("movies-api"))
        >>> await client.movies.popular()
        # => 10:30:45.120 [debug] GET https://... request dispatched
        # => 10:30:45.300 [info] GET https://... request completed cached=false duration_ms=180.2 status=200
        >>> stop()
    """
    log = log or get_logger("restcase.calls")

    def on_call(event: QueryEvent[Any]) -> None:
        call_log = log.for_request(event.request)
        call_log.debug("request dispatched")
        start = time.perf_counter()

        def settled(promise: CancellablePromise[Any]) -> None:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            match promise.exception():
                case None:
                    response = promise.result()
                    cache = getattr(response, "cache", None)
                    call_log.info("request completed", status=getattr(response, "status_code", None),
                                  cached=bool(cache is not None and cache.is_cache), duration_ms=duration_ms)
                case AbortError() | asyncio.CancelledError():
                    call_log.info("request aborted", duration_ms=duration_ms)
                case exc:
                    error = ClientError.from_exception(exc)
                    call_log.error("request failed", error=error.message, code=str(error.code),
                                   recoverable=error.recoverable, duration_ms=duration_ms)

        event.query.add_done_callback(settled)

    return client.on_call(on_call)
