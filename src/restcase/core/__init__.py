"""Core - templates, parameter/URL/body resolution, and API binding."""

from .binder import ApiNode, ApiTree, BoundApi, BoundEndpoint, Branch, CachedEndpoint, Leaf, bind_api, bind_endpoint
from .body import FormData, build_body, parse_body, parse_body_form_data, parse_body_json, parse_body_url_encoded
from .params import ResolvedCall, Transformed, resolve_parameters
from .request import QueryEvent, RequestDescriptor
from .template import CacheOption, EndpointTemplate, ParameterSchema, TemplateOptions
from .url import build_url, inject_cors_prefix, inject_url_prefix

__all__ = [
    # Templates
    "EndpointTemplate", "TemplateOptions", "CacheOption", "ParameterSchema",
    # Resolution
    "resolve_parameters", "ResolvedCall", "Transformed",
    "build_url", "inject_url_prefix", "inject_cors_prefix",
    "build_body", "parse_body", "parse_body_json", "parse_body_url_encoded", "parse_body_form_data", "FormData",
    "RequestDescriptor", "QueryEvent",
    # Binding
    "ApiTree", "ApiNode", "Leaf", "Branch", "BoundApi", "BoundEndpoint", "CachedEndpoint",
    "bind_api", "bind_endpoint",
]
