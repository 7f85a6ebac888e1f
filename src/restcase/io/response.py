"""Responses carrying cache metadata."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any, TypeVar

import httpx

if TYPE_CHECKING:
    from .cache.entry import CacheInfo

R = TypeVar("R")


class TypedResponse(httpx.Response):
    """`httpx.Response` that can be cloned and annotated by the cache layer.

    `cache` is None for uncached calls and a `CacheInfo` for results of a
    cached endpoint.
    """

    cache: CacheInfo[Any] | None = None

    @classmethod
    def from_response(cls, response: httpx.Response) -> TypedResponse:
        """Rebind an already-received response without copying its body."""
        if isinstance(response, cls):
            return response
        typed = cls.__new__(cls)
        typed.__dict__.update(response.__dict__)
        return typed

    def clone(self) -> TypedResponse:
        """Independent copy with its own headers; the body must already be read.

        Raises:
            httpx.ResponseNotRead: the body was not read yet
        """
        _ = self.content
        clone = copy.copy(self)
        clone.headers = httpx.Headers(self.headers)
        clone.cache = None
        return clone


def clone_response(response: R, cache: CacheInfo[Any] | None = None) -> R:
    """Clone via `response.clone()` when available (shallow copy otherwise) and attach `cache`."""
    clone_fn = getattr(response, "clone", None)
    clone = clone_fn() if callable(clone_fn) else copy.copy(response)
    clone.cache = cache  # type: ignore[attr-defined]
    return clone
