"""Shared type aliases and HTTP vocabulary."""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Union

# JSON type aliases - using Any for recursive slots to avoid Pydantic resolution issues
JsonPrimitive = Union[str, int, float, bool, None]
JsonValue = Union[JsonPrimitive, list[Any], dict[str, Any]]
JsonDict = dict[str, Any]

# Parameter / init records passed through the request pipeline
Params = dict[str, Any]
Init = dict[str, Any]


class HttpMethod(StrEnum):
    """HTTP verbs a template can declare."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ApiHeader(StrEnum):
    """Header names the client layer reads or sets."""
    AUTHORIZATION = "Authorization"
    USER_AGENT = "User-Agent"
    CONTENT_TYPE = "Content-Type"
    ACCEPT = "accept"


class ContentType(StrEnum):
    """Common MIME types for request and response payloads."""
    OCTET_STREAM = "application/octet-stream"
    TEXT = "text/plain"
    CSS = "text/css"
    HTML = "text/html"
    JAVASCRIPT = "text/javascript"
    APNG = "image/apng"
    AVIF = "image/avif"
    GIF = "image/gif"
    JPEG = "image/jpeg"
    PNG = "image/png"
    SVG = "image/svg+xml"
    WEBP = "image/webp"
    FORM_DATA = "multipart/form-data"
    BYTE_RANGES = "multipart/byteranges"
    JSON = "application/json"
    XML = "application/xml"
    FORM_URL_ENCODED = "application/x-www-form-urlencoded"


def is_blank(value: object) -> bool:
    """Whether a parameter value counts as missing (None or empty string)."""
    return value is None or value == ""
