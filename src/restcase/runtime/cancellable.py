"""Cancellable awaitables for in-flight calls.

A CancellablePromise wraps a coroutine in an asyncio Task that is scheduled
immediately, so work starts at call time rather than at the first await. Every
promise carries an AbortSignal; `cancel()` fires the signal exactly once and
cancels the task. Awaiting a promise cancelled that way raises AbortError
instead of asyncio.CancelledError, so callers handle it like any other
failure. Cancellation coming from the awaiting task itself still propagates as
CancelledError.

Example:
    >>> promise = CancellablePromise(fetch_page())
    >>> promise.cancel()
    >>> await promise
    Traceback (most recent call last):
    AbortError: The operation was aborted.

Chained promises (`then`) share the parent's signal, so cancelling any link
cancels the whole chain.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Generator
from typing import Any, Generic, TypeVar

from ..foundation.errors import AbortError

T = TypeVar("T")
R = TypeVar("R")

AbortListener = Callable[[object], None]


class AbortSignal:
    """One-shot cancellation token observed by every promise in a call chain."""

    __slots__ = ("_aborted", "_reason", "_listeners")

    def __init__(self) -> None:
        self._aborted = False
        self._reason: object = None
        self._listeners: list[AbortListener] = []

    @property
    def aborted(self) -> bool:
        return self._aborted

    @property
    def reason(self) -> object:
        return self._reason

    def add_listener(self, listener: AbortListener) -> None:
        """Register a listener; runs immediately if the signal already fired."""
        if self._aborted:
            listener(self._reason)
        else:
            self._listeners.append(listener)

    def abort(self, reason: object = None) -> bool:
        """Fire the signal. Returns False if it had already fired."""
        if self._aborted:
            return False
        self._aborted, self._reason = True, reason
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener(reason)
        return True

    def raise_if_aborted(self) -> None:
        if self._aborted:
            raise AbortError(self._reason)

    def __repr__(self) -> str:
        return f"AbortSignal(aborted={self._aborted})"


class CancellablePromise(Generic[T]):
    """Awaitable handle on a scheduled coroutine with cooperative cancellation.

    Args:
        awaitable: Coroutine or future to run
        signal: Signal to observe (shared along `then` chains); a new one by default
    """

    __slots__ = ("_task", "_signal")

    def __init__(self, awaitable: Awaitable[T], *, signal: AbortSignal | None = None) -> None:
        self._signal = signal or AbortSignal()
        self._task: asyncio.Future[T] = asyncio.ensure_future(awaitable)
        self._signal.add_listener(self._on_abort)

    # ─────────────────────────────────────────────────────────────────
    # Construction helpers
    # ─────────────────────────────────────────────────────────────────

    @classmethod
    def resolve(cls, value: R) -> CancellablePromise[R]:
        """Promise already settled with a value."""
        async def _value() -> R:
            return value
        return cls(_value())  # type: ignore[return-value]

    @classmethod
    def reject(cls, exc: BaseException) -> CancellablePromise[Any]:
        """Promise that fails with `exc` when awaited."""
        async def _raise() -> Any:
            raise exc
        return cls(_raise())

    # ─────────────────────────────────────────────────────────────────
    # Cancellation
    # ─────────────────────────────────────────────────────────────────

    @property
    def signal(self) -> AbortSignal:
        return self._signal

    @property
    def cancelled(self) -> bool:
        return self._signal.aborted

    def cancel(self, reason: object = None) -> bool:
        """Abort the call. No-op (returns False) once settled or already cancelled."""
        if self._task.done():
            return False
        return self._signal.abort(reason)

    def _on_abort(self, reason: object) -> None:
        self._task.cancel(None if reason is None else str(reason))

    # ─────────────────────────────────────────────────────────────────
    # Settlement
    # ─────────────────────────────────────────────────────────────────

    def done(self) -> bool:
        return self._task.done()

    def result(self) -> T:
        """Settled value; raises the failure (AbortError when cancelled)."""
        if (exc := self.exception()) is not None:
            raise exc
        return self._task.result()

    def exception(self) -> BaseException | None:
        """Failure of a settled promise, AbortError for a cancelled one, None on success."""
        if self._task.cancelled():
            return AbortError(self._signal.reason) if self._signal.aborted else asyncio.CancelledError()
        return self._task.exception()

    def add_done_callback(self, fn: Callable[[CancellablePromise[T]], None]) -> None:
        """Run `fn(promise)` once the promise settles (including cancellation)."""
        self._task.add_done_callback(lambda _: fn(self))

    def then(self, fn: Callable[[T], R | Awaitable[R]]) -> CancellablePromise[R]:
        """Chain a (sync or async) transformation; the result shares this signal."""
        async def _chain() -> R:
            result = fn(await self)
            if inspect.isawaitable(result):
                result = await result
            return result  # type: ignore[return-value]
        return CancellablePromise(_chain(), signal=self._signal)

    async def _await(self) -> T:
        try:
            return await self._task
        except asyncio.CancelledError as exc:
            if self._signal.aborted:
                raise AbortError(self._signal.reason) from exc
            raise

    def __await__(self) -> Generator[Any, None, T]:
        return self._await().__await__()

    def __repr__(self) -> str:
        state = "cancelled" if self._signal.aborted else "done" if self._task.done() else "pending"
        return f"CancellablePromise({state})"
