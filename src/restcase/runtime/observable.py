"""Ordered observer registries for client events.

Observable fans a value out to its subscribers in subscription order,
synchronously, on the caller's stack. ObservableState additionally keeps the
latest value and hands observers both the new and the previous state.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

Observer = Callable[..., None]
Unsubscribe = Callable[[], bool]
Updater = Callable[[T], T]


class Observable(Generic[T]):
    """Ordered subscriber list with synchronous notification."""

    __slots__ = ("_observers",)

    def __init__(self) -> None:
        self._observers: list[Observer] = []

    def __len__(self) -> int:
        return len(self._observers)

    def __contains__(self, observer: object) -> bool:
        return observer in self._observers

    def subscribe(self, observer: Observer) -> Unsubscribe:
        """Add observer; returns a callable that removes it again."""
        self._observers.append(observer)
        return lambda: self.unsubscribe(observer)

    def unsubscribe(self, observer: Observer | None = None) -> bool:
        """Remove one observer, or all when None. Returns whether anything was removed."""
        if observer is None:
            had_any = bool(self._observers)
            self._observers.clear()
            return had_any
        try:
            self._observers.remove(observer)
        except ValueError:
            return False
        return True

    def update(self, value: T) -> None:
        # Snapshot so observers may unsubscribe while being notified
        for observer in tuple(self._observers):
            observer(value)


class ObservableState(Observable[T]):
    """Observable holding a current state; observers receive `(new, old)`.

    Example:
        >>> auth = ObservableState({"token": None})
        >>> auth.subscribe(lambda new, old: print(old, "->", new))
        >>> auth.update(lambda s: {**s, "token": "abc"})
        {'token': None} -> {'token': 'abc'}
    """

    __slots__ = ("_state",)

    def __init__(self, state: T) -> None:
        super().__init__()
        self._state = state

    @property
    def state(self) -> T:
        return self._state

    def update(self, value: T | Updater[T]) -> None:  # type: ignore[override]
        """Replace the state with `value`, or with `value(state)` when callable."""
        old = self._state
        self._state = value(old) if callable(value) else value
        for observer in tuple(self._observers):
            observer(self._state, old)
