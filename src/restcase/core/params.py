"""Parameter resolution: hook transform, seed merge, template transform, validation."""

from __future__ import annotations

from collections.abc import Callable
from typing import NamedTuple

from ..foundation.errors import ParameterValidationError
from ..foundation.types import Init, Params
from .template import EndpointTemplate


class Transformed(NamedTuple):
    """What a client-level transform hook hands back. Fields left as None keep the input."""

    template: EndpointTemplate | None = None
    params: Params | None = None
    init: Init | None = None


TransformHook = Callable[[EndpointTemplate, Params, Init | None], Transformed | None]


class ResolvedCall(NamedTuple):
    """Outcome of parameter resolution.

    Attributes:
        template: Template after the client-level hook
        params: Effective parameters (after the template transform); drive URL and cache key
        merged: Seed merged with call parameters, before the template transform; drive the body
        init: Call-time init after the client-level hook
    """

    template: EndpointTemplate
    params: Params
    merged: Params
    init: Init | None


def apply_transform(template: EndpointTemplate, params: Params, init: Init | None,
                    hook: TransformHook | None) -> tuple[EndpointTemplate, Params, Init | None]:
    """Run the client-level hook, keeping any input it leaves unset."""
    if hook is None or (out := hook(template, params, init)) is None:
        return template, params, init
    return (
        out.template if out.template is not None else template,
        out.params if out.params is not None else params,
        out.init if out.init is not None else init,
    )


def merge_parameters(template: EndpointTemplate, params: Params) -> tuple[Params, Params]:
    """Seed < params, then the template transform. Returns (merged, effective)."""
    merged = {**(template.seed or {}), **params}
    effective = template.transform(merged) if template.transform is not None else merged
    return merged, effective if effective is not None else merged


def resolve_parameters(
    template: EndpointTemplate,
    params: Params | None = None,
    init: Init | None = None,
    transform: TransformHook | None = None,
) -> ResolvedCall:
    """Resolve the parameters of one call, strictly in order.

    1. the client-level `transform` hook may substitute template, params or init
    2. template seed is merged under the params (explicit params win)
    3. the template's own transform rewrites the merged params
    4. the template's validate hook runs; raising or returning a falsy value aborts

    Raises:
        ParameterValidationError: validate returned a falsy value
        Exception: anything validate or either transform raises, unchanged
    """
    template, params, init = apply_transform(template, dict(params or {}), init, transform)
    merged, effective = merge_parameters(template, params)
    if template.validate is not None and not template.validate(effective):
        raise ParameterValidationError()
    return ResolvedCall(template, effective, merged, init)
