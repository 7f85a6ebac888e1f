"""Runtime - cancellation, observers, and call telemetry."""

from .cancellable import AbortSignal, CancellablePromise
from .observable import Observable, ObservableState

__all__ = ["AbortSignal", "CancellablePromise", "Observable", "ObservableState"]
