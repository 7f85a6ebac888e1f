"""Request descriptors and the events emitted when they are dispatched."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ..foundation.types import Init

if TYPE_CHECKING:
    from ..runtime.cancellable import CancellablePromise

R = TypeVar("R")


@dataclass(slots=True)
class RequestDescriptor:
    """Fetch input plus init (``method``, ``headers``, optional ``body`` and overrides)."""

    input: str
    init: Init

    @property
    def method(self) -> str:
        return self.init.get("method", "GET")

    @property
    def headers(self) -> dict[str, str]:
        return self.init.setdefault("headers", {})

    @property
    def body(self) -> Any:
        return self.init.get("body")


@dataclass(slots=True, frozen=True)
class QueryEvent(Generic[R]):
    """Emitted to call observers once per call (cache hits included), while `query` is still pending."""

    request: RequestDescriptor
    query: CancellablePromise[R]
