"""Binding template trees to a client.

An API is described as a nested mapping of names to templates. `ApiTree.of`
converts it once into `Leaf` / `Branch` nodes, and `bind_api` walks that tree
producing a `BoundApi` of the same shape whose leaves are `BoundEndpoint`s.

Example:
    >>> api = ApiTree.of({
    ...     "movies": {
    ...         "popular": EndpointTemplate(method="GET", url="/movies/popular"),
    ...         "get": EndpointTemplate(method="GET", url="/movies/:id", opts={"cache": False}),
    ...     },
    ... })
    >>> bound = bind_api(api, call=client._call, resolve=client.resolve_url)
    >>> await bound.movies.popular()
    >>> await bound["movies"]["popular"].cached()
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING, Any, Union

import httpx

from ..foundation.types import Init, JsonDict, Params
from .template import BodySchema, EndpointTemplate, TemplateOptions, Transform, Validate

if TYPE_CHECKING:
    from ..io.cache.decorator import CachedCall
    from ..io.cache.entry import CacheOptions
    from ..runtime.cancellable import CancellablePromise

Call = Callable[[EndpointTemplate, Params | None, Init | None], "CancellablePromise[Any]"]
Resolve = Callable[[EndpointTemplate, Params | None], httpx.URL]
EndpointCall = Callable[[Params | None, Init | None], "CancellablePromise[Any]"]
CacheFactory = Callable[[EndpointTemplate, EndpointCall], "CachedCall[Any]"]


# ─────────────────────────────────────────────────────────────────────────────
# Tree
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Leaf:
    template: EndpointTemplate


@dataclass(frozen=True, slots=True)
class Branch:
    children: Mapping[str, ApiNode]

    @classmethod
    def of(cls, api: Mapping[str, Any]) -> Branch:
        """Convert a nested mapping of templates (or existing nodes).

        Raises:
            TypeError: a value is neither a template, a node, nor a mapping
        """
        children: dict[str, ApiNode] = {}
        for name, node in api.items():
            match node:
                case EndpointTemplate():
                    children[name] = Leaf(node)
                case Leaf() | Branch():
                    children[name] = node
                case Mapping():
                    children[name] = cls.of(node)
                case _:
                    raise TypeError(f"Unsupported api node {name!r}: {type(node).__name__}")
        return cls(children)

    def templates(self) -> Iterator[EndpointTemplate]:
        """Every template in the tree, depth first."""
        for node in self.children.values():
            match node:
                case Leaf(template):
                    yield template
                case Branch():
                    yield from node.templates()


ApiNode = Union[Leaf, Branch]
ApiTree = Branch


# ─────────────────────────────────────────────────────────────────────────────
# Bound endpoints
# ─────────────────────────────────────────────────────────────────────────────


class _EndpointView:
    """Read-only template metadata plus URL resolution."""

    __slots__ = ("_template", "_resolve")

    def __init__(self, template: EndpointTemplate, resolve: Resolve) -> None:
        self._template, self._resolve = template, resolve

    @property
    def template(self) -> EndpointTemplate:
        return self._template

    @property
    def method(self) -> str:
        return str(self._template.method)

    @property
    def url(self) -> str:
        return self._template.url

    @property
    def opts(self) -> TemplateOptions:
        return self._template.options

    @property
    def body(self) -> BodySchema | None:
        return self._template.body

    @property
    def init(self) -> Init:
        return self._template.init

    @property
    def seed(self) -> Params | None:
        return self._template.seed

    @property
    def validate(self) -> Validate | None:
        return self._template.validate

    @property
    def transform(self) -> Transform | None:
        return self._template.transform

    @property
    def config(self) -> JsonDict:
        return self._template.config

    def resolve(self, params: Params | None = None) -> httpx.URL:
        """URL a call with `params` would hit, without dispatching.

        Raises:
            MissingParameterError: a mandatory path or query parameter is missing
        """
        return self._resolve(self._template, params)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.method} {self.url})"


class BoundEndpoint(_EndpointView):
    """Callable endpoint: ``endpoint(params=None, init=None) -> CancellablePromise``.

    `cached` is the cached variant when the template caches, None otherwise.
    """

    __slots__ = ("_call", "_cached")

    def __init__(self, template: EndpointTemplate, call: Call, resolve: Resolve,
                 cached: CachedEndpoint | None = None) -> None:
        super().__init__(template, resolve)
        self._call, self._cached = call, cached

    @property
    def cached(self) -> CachedEndpoint | None:
        return self._cached

    def __call__(self, params: Params | None = None, init: Init | None = None) -> CancellablePromise[Any]:
        return self._call(self._template, params, init)


class CachedEndpoint(_EndpointView):
    """Cached endpoint: ``endpoint(params=None, init=None, cache_options=None)`` plus `evict`."""

    __slots__ = ("_cached_call",)

    def __init__(self, template: EndpointTemplate, cached_call: CachedCall[Any], resolve: Resolve) -> None:
        super().__init__(template, resolve)
        self._cached_call = cached_call

    def __call__(self, params: Params | None = None, init: Init | None = None,
                 cache_options: CacheOptions | dict[str, Any] | None = None) -> CancellablePromise[Any]:
        return self._cached_call(params, init, cache_options)

    def key(self, params: Params | None = None, init: Init | None = None,
            cache_options: CacheOptions | dict[str, Any] | None = None) -> str:
        """Cache key a call with these arguments uses."""
        return self._cached_call.key_for(params, init, cache_options)

    async def evict(self, params: Params | None = None, init: Init | None = None,
                    cache_options: CacheOptions | dict[str, Any] | None = None) -> str | None:
        """Clear every cached response of this endpoint. Returns the eviction key used."""
        return await self._cached_call.evict(params, init, cache_options)


class BoundApi(Mapping[str, "BoundEndpoint | BoundApi"]):
    """Bound tree node; members are reachable as items and as attributes."""

    __slots__ = ("_members",)

    def __init__(self, members: Mapping[str, BoundEndpoint | BoundApi]) -> None:
        self._members = dict(members)

    def __getitem__(self, name: str) -> BoundEndpoint | BoundApi:
        return self._members[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __getattr__(self, name: str) -> BoundEndpoint | BoundApi:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._members[name]
        except KeyError:
            raise AttributeError(f"No endpoint or group named {name!r}") from None

    def __dir__(self) -> list[str]:
        return [*super().__dir__(), *self._members]

    def __repr__(self) -> str:
        return f"BoundApi({', '.join(self._members)})"


# ─────────────────────────────────────────────────────────────────────────────
# Binding
# ─────────────────────────────────────────────────────────────────────────────


def bind_endpoint(template: EndpointTemplate, call: Call, resolve: Resolve,
                  cache_factory: CacheFactory | None = None) -> BoundEndpoint:
    cached = None
    if template.caching and cache_factory is not None:
        cached = CachedEndpoint(template, cache_factory(template, partial(call, template)), resolve)
    return BoundEndpoint(template, call, resolve, cached)


def bind_api(tree: Branch | Mapping[str, Any], call: Call, resolve: Resolve,
             cache_factory: CacheFactory | None = None) -> BoundApi:
    """Bind every template in `tree`, preserving its nesting. Templates are not modified."""
    if not isinstance(tree, Branch):
        tree = ApiTree.of(tree)
    members: dict[str, BoundEndpoint | BoundApi] = {}
    for name, node in tree.children.items():
        match node:
            case Leaf(template):
                members[name] = bind_endpoint(template, call, resolve, cache_factory)
            case Branch():
                members[name] = bind_api(node, call, resolve, cache_factory)
    return BoundApi(members)
