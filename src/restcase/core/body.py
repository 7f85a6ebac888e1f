"""Request body resolution.

Every encoder projects the parameters onto the keys declared in the template's
body schema and enforces the mandatory ones before encoding.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import urlencode

import orjson

from ..foundation.errors import MissingParameterError
from ..foundation.types import ApiHeader, ContentType, JsonDict, Params, is_blank
from .template import BodySchema
from .url import render_value


@dataclass(slots=True)
class FormData:
    """Ordered multipart fields; transports send it as multipart/form-data."""

    fields: list[tuple[str, str]] = field(default_factory=list)

    def append(self, name: str, value: object) -> None:
        self.fields.append((name, render_value(value)))

    def to_dict(self) -> dict[str, str]:
        return dict(self.fields)

    def __len__(self) -> int:
        return len(self.fields)


def parse_body_json(schema: BodySchema | None, params: Params) -> JsonDict:
    """Project `params` onto the schema keys.

    Raises:
        MissingParameterError: a mandatory body field is None or empty
    """
    schema = schema or {}
    body = {k: v for k, v in params.items() if k in schema}
    for key, required in schema.items():
        if required is True and is_blank(params.get(key)):
            raise MissingParameterError("body", key)
    return body


def parse_body(schema: BodySchema | None, params: Params) -> str:
    """JSON-encoded body."""
    return orjson.dumps(parse_body_json(schema, params), default=str).decode()


def parse_body_url_encoded(schema: BodySchema | None, params: Params) -> str:
    return urlencode([(k, render_value(v)) for k, v in parse_body_json(schema, params).items()])


def parse_body_form_data(schema: BodySchema | None, params: Params) -> FormData:
    form = FormData()
    for key, value in parse_body_json(schema, params).items():
        form.append(key, value)
    return form


def content_type_of(headers: dict[str, str] | None) -> str | None:
    """Content-Type header value, looked up case-insensitively."""
    wanted = ApiHeader.CONTENT_TYPE.lower()
    return next((v for k, v in (headers or {}).items() if k.lower() == wanted), None)


def build_body(schema: BodySchema | None, params: Params, content_type: str | None = None) -> str | FormData:
    """Encode the body for the negotiated content type (JSON unless a form type is requested)."""
    mime = (content_type or "").split(";", 1)[0].strip().lower()
    if mime == ContentType.FORM_URL_ENCODED:
        return parse_body_url_encoded(schema, params)
    if mime == ContentType.FORM_DATA:
        return parse_body_form_data(schema, params)
    return parse_body(schema, params)
