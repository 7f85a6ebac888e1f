"""Endpoint templates: the static description of one HTTP endpoint.

A template declares the method, the URL pattern (``/movies/:id?page=``), which
path/query/body parameters are mandatory, static request init, and optional
seed/transform/validate hooks. Templates are plain data; binding them to a
client (see `binder`) turns them into callables.

Example:
    >>> popular = EndpointTemplate(
    ...     method="GET",
    ...     url="/movies/:category/popular?page=",
    ...     opts={"cache": 60_000, "parameters": {"path": {"category": True}, "query": {"page": False}}},
    ...     seed={"page": 1},
    ... )
    >>> popular.retention
    60000
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, TypeAdapter

from ..foundation.types import HttpMethod, Init, JsonDict, Params


class CacheOption(BaseModel):
    """Object form of a template's cache policy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    retention: NonNegativeFloat | None = Field(default=None, description="Retention in milliseconds")
    evict_on_error: bool | None = None


class ParameterSchema(BaseModel):
    """Parameter names per position, mapped to whether they are mandatory."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: dict[str, bool] = Field(default_factory=dict)
    query: dict[str, bool] = Field(default_factory=dict)


class TemplateOptions(BaseModel):
    """Template options.

    Attributes:
        cache: False disables caching; True caches with the store's retention;
            a number is the retention in milliseconds; a CacheOption sets both
            retention and evict-on-error.
        parameters: Required/optional path and query parameter names
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    cache: bool | int | float | CacheOption = True
    parameters: ParameterSchema = Field(default_factory=ParameterSchema)


_OPTIONS: TypeAdapter[TemplateOptions] = TypeAdapter(TemplateOptions)

CachePolicy = bool | int | float | CacheOption


def policy_retention(policy: CachePolicy | None) -> float | None:
    """Retention carried by a cache policy: the number, or the object form's `retention`."""
    match policy:
        case CacheOption(retention=retention):
            return retention
        case bool() | None:
            return None
        case number:
            return number


def policy_evict_on_error(policy: CachePolicy | None) -> bool | None:
    return policy.evict_on_error if isinstance(policy, CacheOption) else None


Validate = Callable[[Params], Any]
Transform = Callable[[Params], Params]
BodySchema = dict[str, bool]


@dataclass(slots=True)
class EndpointTemplate:
    """Description of one endpoint.

    Args:
        method: HTTP verb
        url: URL pattern; ``:name`` path segments and a literal query skeleton
        opts: TemplateOptions or an equivalent dict
        body: Body field names mapped to whether they are mandatory
        init: Static request init (headers, ...) merged under call-time init
        seed: Default parameter values, overridden by call parameters
        validate: Check run on the effective parameters before dispatch
        transform: Rewrites the effective parameters before validation
    """

    method: HttpMethod | str
    url: str
    opts: TemplateOptions | JsonDict = field(default_factory=TemplateOptions)
    body: BodySchema | None = None
    init: Init = field(default_factory=dict)
    seed: Params | None = None
    validate: Validate | None = None
    transform: Transform | None = None

    def __post_init__(self) -> None:
        self.method = HttpMethod(str(self.method).upper())
        if not isinstance(self.opts, TemplateOptions):
            self.opts = _OPTIONS.validate_python(self.opts or {})
        self.init = dict(self.init or {})

    @property
    def options(self) -> TemplateOptions:
        return self.opts  # type: ignore[return-value]

    @property
    def config(self) -> JsonDict:
        """Serializable part of the template (hooks and seed excluded); keys cache entries."""
        config: JsonDict = {
            "method": str(self.method),
            "url": self.url,
            "opts": self.options.model_dump(mode="json"),
            "init": self.init,
            "body": self.body,
        }
        return {k: v for k, v in config.items() if v is not None}

    @property
    def caching(self) -> bool:
        return bool(self.options.cache)

    @property
    def retention(self) -> float | None:
        """Template-level retention in ms, if the cache policy sets one."""
        return policy_retention(self.options.cache)

    @property
    def evict_on_error(self) -> bool | None:
        """Template-level evict-on-error flag (object form only)."""
        return policy_evict_on_error(self.options.cache)

    def inject_prefix(self, prefix: str) -> bool:
        """Prepend `prefix` to the url unless it is already there. Returns whether it mutated."""
        if not prefix or self.url.startswith(prefix):
            return False
        self.url = f"{prefix}{self.url}"
        return True
