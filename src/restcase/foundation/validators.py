"""Reusable checks for template ``validate`` hooks.

is_number coerces and returns the number; the range and length checks return
True so they compose directly into a validate hook. Failures raise one of the
ParameterValidationError subclasses.

Example:
    >>> from restcase.foundation import validators
    >>> template = EndpointTemplate(
    ...     method="GET",
    ...     url="/search?limit=",
    ...     validate=lambda p: validators.min_max(p.get("limit", 10), min=1, max=100, name="limit"),
    ... )
"""

from __future__ import annotations

import math
from collections.abc import Sized

from .errors import MaxValidationError, MinMaxValidationError, MinValidationError, NaNValidationError


def is_number(value: str | float, name: str | None = None) -> float:
    """Coerce to a number or raise NaNValidationError."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise NaNValidationError(value, name) from None
    if math.isnan(number):
        raise NaNValidationError(value, name)
    return number


def max_value(value: str | float, *, max: float, name: str | None = None) -> bool:  # noqa: A002
    number = is_number(value)
    if number > max:
        raise MaxValidationError(value=number, max=max, name=name)
    return True


def min_value(value: str | float, *, min: float, name: str | None = None) -> bool:  # noqa: A002
    number = is_number(value)
    if number < min:
        raise MinValidationError(value=number, min=min, name=name)
    return True


def min_max(value: str | float, *, min: float, max: float, name: str | None = None) -> bool:  # noqa: A002
    number = is_number(value)
    if number < min or number > max:
        raise MinMaxValidationError(value=number, min=min, max=max, name=name)
    return True


def max_length(value: Sized, *, max: int, name: str | None = None) -> bool:  # noqa: A002
    return max_value(len(value), max=max, name=name)


def min_length(value: Sized, *, min: int, name: str | None = None) -> bool:  # noqa: A002
    return min_value(len(value), min=min, name=name)


def min_max_length(value: Sized, *, min: int, max: int, name: str | None = None) -> bool:  # noqa: A002
    return min_max(len(value), min=min, max=max, name=name)
