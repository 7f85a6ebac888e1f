"""Cache key serialization.

A cache key is ``{"template":<config>,"param":<params>,"init":<init>}`` with
object keys sorted, so equal inputs always give the same string. The eviction
key is the ``{"template":<config>`` prefix shared by every key of one template.
"""

from __future__ import annotations

from typing import Any

import orjson

from ...foundation.types import Init, JsonDict, Params

_OPTIONS = orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS


def dumps(value: Any) -> str:
    """Canonical JSON: sorted keys, non-JSON values stringified."""
    return orjson.dumps(value, option=_OPTIONS, default=str).decode()


def eviction_key(config: JsonDict) -> str:
    return '{"template":' + dumps(config)


def cache_key(config: JsonDict, params: Params, init: Init | None = None) -> str:
    key = f'{eviction_key(config)},"param":{dumps(params)}'
    if init is not None:
        key += f',"init":{dumps(init)}'
    return key + "}"
