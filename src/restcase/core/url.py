"""URL resolution for endpoint templates.

`build_url` turns a template's URL pattern plus the effective parameters into
an absolute `httpx.URL`:

    >>> template = EndpointTemplate(
    ...     method="GET",
    ...     url="/movies/:category/popular?page=",
    ...     opts={"parameters": {"path": {"category": True}, "query": {"page": True}}},
    ... )
    >>> str(build_url(template, {"category": "drama", "page": 2}, "https://api.example.com"))
    'https://api.example.com/movies/drama/popular?page=2'
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl

import httpx
import orjson

from ..foundation.errors import MissingParameterError
from ..foundation.types import Params, is_blank
from .template import EndpointTemplate

if TYPE_CHECKING:
    from ..foundation.config import ClientSettings


def render_value(value: Any) -> str:
    """String form of a path or query value; containers become JSON."""
    match value:
        case bool():
            return "true" if value else "false"
        case dict() | list() | tuple():
            return orjson.dumps(value, default=str).decode()
        case _:
            return str(value)


def _fill_path(path: str, params: Params, required: dict[str, bool]) -> str:
    """Substitute ``:name`` segments and drop the empty ones, keeping a leading slash."""
    segments: list[str] = []
    for segment in path.split("/"):
        if segment.startswith(":"):
            name = segment[1:]
            value = params.get(name)
            if is_blank(value) and required.get(name) is True:
                raise MissingParameterError("path", name)
            segment = "" if is_blank(value) else render_value(value)
        if segment:
            segments.append(segment)
    filled = "/".join(segments)
    return f"/{filled}" if path.startswith("/") else filled


def _fill_query(query: str, params: Params, required: dict[str, bool]) -> list[tuple[str, str]]:
    """Skeleton keys then schema keys, overlaid with params; blank values are left out."""
    skeleton = dict(parse_qsl(query, keep_blank_values=True))
    for key in required:
        skeleton.setdefault(key, "")

    pairs: list[tuple[str, str]] = []
    for key, default in skeleton.items():
        value = params.get(key)
        if value is None:
            value = default
        if not is_blank(value):
            pairs.append((key, render_value(value)))
        elif required.get(key) is True:
            raise MissingParameterError("query", key)
    return pairs


def build_url(template: EndpointTemplate, params: Params, base: str | httpx.URL) -> httpx.URL:
    """Resolve `template.url` against `base`.

    Raises:
        MissingParameterError: a mandatory path or query parameter is missing or empty
    """
    path, _, query = template.url.partition("?")
    schema = template.options.parameters
    if ":" in path:
        path = _fill_path(path, params, schema.path)

    url = httpx.URL(base).join(path)
    if pairs := _fill_query(query, params, schema.query):
        url = url.copy_merge_params(pairs)
    return url


def inject_url_prefix(prefix: str, template: EndpointTemplate, mutate: bool = False) -> EndpointTemplate:
    """Prefix the template url unless it already starts with `prefix`.

    With `mutate` the template itself is updated, otherwise a modified copy is returned.
    """
    if template.url.startswith(prefix):
        return template
    if not mutate:
        return dataclasses.replace(template, url=f"{prefix}{template.url}")
    template.inject_prefix(prefix)
    return template


def inject_cors_prefix(template: EndpointTemplate, settings: ClientSettings, mutate: bool = False) -> EndpointTemplate:
    """Inject ``/<cors_prefix>`` when the client settings declare one."""
    if not settings.cors_prefix:
        return template
    return inject_url_prefix(f"/{settings.cors_prefix}", template, mutate)
