"""Tests for endpoint templates and their cache policy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from restcase import CacheOption, EndpointTemplate, HttpMethod, TemplateOptions


def test_defaults() -> None:
    """Templates cache by default and declare no parameters."""
    template = EndpointTemplate(method="get", url="/endpoint")
    assert template.method == HttpMethod.GET
    assert isinstance(template.opts, TemplateOptions)
    assert template.caching
    assert template.retention is None
    assert template.evict_on_error is None
    assert template.options.parameters.path == {}


@pytest.mark.parametrize(
    ("cache", "caching", "retention", "evict_on_error"),
    [
        (True, True, None, None),
        (False, False, None, None),
        (20, True, 20, None),
        ({"retention": 20, "evict_on_error": True}, True, 20, True),
        ({"evict_on_error": False}, True, None, False),
    ],
)
def test_cache_policy(cache: object, caching: bool, retention: float | None, evict_on_error: bool | None) -> None:
    """Each cache form resolves to caching flag, retention and evict-on-error."""
    template = EndpointTemplate(method="GET", url="/endpoint", opts={"cache": cache})
    assert template.caching is caching
    assert template.retention == retention
    assert template.evict_on_error is evict_on_error


def test_object_policy_is_model() -> None:
    template = EndpointTemplate(method="GET", url="/endpoint", opts={"cache": {"retention": 5}})
    assert template.options.cache == CacheOption(retention=5)


def test_invalid_options_rejected() -> None:
    """Unknown option keys and negative retention fail validation."""
    with pytest.raises(ValidationError):
        EndpointTemplate(method="GET", url="/endpoint", opts={"unknown": True})
    with pytest.raises(ValidationError):
        EndpointTemplate(method="GET", url="/endpoint", opts={"cache": {"retention": -1}})


def test_invalid_method_rejected() -> None:
    with pytest.raises(ValueError):
        EndpointTemplate(method="FETCH", url="/endpoint")


def test_config_is_serializable_part() -> None:
    """Hooks and seed stay out of the config; None fields are omitted."""
    template = EndpointTemplate(
        method="POST",
        url="/movies",
        body={"title": True},
        init={"headers": {"X-Test": "1"}},
        seed={"title": "seeded"},
        validate=lambda p: True,
    )
    config = template.config
    assert config["method"] == "POST"
    assert config["body"] == {"title": True}
    assert config["init"] == {"headers": {"X-Test": "1"}}
    assert "seed" not in config and "validate" not in config
    assert "body" not in EndpointTemplate(method="GET", url="/movies").config


def test_inject_prefix() -> None:
    """Prefix is added once."""
    template = EndpointTemplate(method="GET", url="/endpoint")
    assert template.inject_prefix("/relay")
    assert not template.inject_prefix("/relay")
    assert template.url == "/relay/endpoint"
