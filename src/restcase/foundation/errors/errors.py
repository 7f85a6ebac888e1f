"""Standardized error handling for endpoint calls.

Provides error codes, a structured error model for reporting, and the
exception hierarchy raised by the request pipeline. Every failure surfaces as
an exception at the await site; nothing here logs or swallows.
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Annotated, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from ..types import JsonDict

ABORT_MESSAGE = "The operation was aborted."

ParameterKind = Literal["path", "query", "body"]


class ErrorCode(StrEnum):
    """Standard error codes for client failures.

    Used for programmatic error handling and retry decisions.
    """
    MISSING_PARAMETER = "MISSING_PARAMETER"
    VALIDATION = "VALIDATION"
    ABORTED = "ABORTED"
    API_ERROR = "API_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    EXPIRED_TOKEN = "EXPIRED_TOKEN"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    UNKNOWN = "UNKNOWN"


# Flattened pattern -> code mapping for exceptions raised outside this package
_PATTERN_CODES: dict[str, ErrorCode] = {
    "timeout": ErrorCode.TIMEOUT,
    "connect": ErrorCode.NETWORK_ERROR,
    "network": ErrorCode.NETWORK_ERROR,
    "abort": ErrorCode.ABORTED,
    "cancel": ErrorCode.ABORTED,
    "validation": ErrorCode.VALIDATION,
}
_PATTERN_KEYS = tuple(_PATTERN_CODES.keys())


@lru_cache(maxsize=256)
def _classify_cached(exc_key: str) -> ErrorCode:
    haystack = exc_key.lower()
    for pattern in _PATTERN_KEYS:
        if pattern in haystack:
            return _PATTERN_CODES[pattern]
    return ErrorCode.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCode:
    """Map exception to error code: own exceptions carry theirs, others by name/message."""
    if isinstance(exc, RestcaseException):
        return exc.code
    return _classify_cached(f"{type(exc).__name__} {exc}")


class ClientError(BaseModel):
    """Structured, serializable view of a failed call.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        recoverable: Whether the call might succeed if retried
        details: Optional detail (status code, parameter name, ...)
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        json_schema_extra={
            "title": "Client Error",
            "examples": [{
                "message": "Missing mandatory path parameter: 'id'",
                "code": "MISSING_PARAMETER",
                "recoverable": False,
            }],
        },
    )

    message: Annotated[str, Field(min_length=1)]
    code: ErrorCode = ErrorCode.UNKNOWN
    recoverable: bool = False
    details: JsonDict = Field(default_factory=dict, repr=False)

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | BaseException) -> str:
        """Accept exception objects and extract message."""
        return str(v) if isinstance(v, BaseException) else v

    @computed_field
    @property
    def is_retryable(self) -> bool:
        """Whether this error is typically retryable (rate limits, timeouts, network)."""
        return self.code in _RETRYABLE_CODES

    @classmethod
    def from_exception(cls, exc: BaseException) -> Self:
        """Create from any exception with auto-classification."""
        if isinstance(exc, RestcaseException):
            return exc.to_error()  # type: ignore[return-value]
        code = classify_exception(exc)
        return cls(message=str(exc) or type(exc).__name__, code=code, recoverable=code in _RETRYABLE_CODES)


_RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.RATE_LIMITED,
    ErrorCode.TIMEOUT,
    ErrorCode.NETWORK_ERROR,
})


# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────


class RestcaseException(Exception):
    """Base for every exception raised by the client layer."""

    code: ErrorCode = ErrorCode.UNKNOWN
    recoverable: bool = False

    def details(self) -> JsonDict:
        return {}

    def to_error(self) -> ClientError:
        """Structured view of this exception."""
        return ClientError(message=str(self) or type(self).__name__, code=self.code,
                           recoverable=self.recoverable, details=self.details())


class MissingParameterError(RestcaseException, ValueError):
    """A parameter the template marks mandatory resolved to empty or missing."""

    code = ErrorCode.MISSING_PARAMETER

    def __init__(self, kind: ParameterKind, name: str) -> None:
        self.kind, self.name = kind, name
        super().__init__(f"Missing mandatory {kind} parameter: '{name}'")

    def details(self) -> JsonDict:
        return {"kind": self.kind, "name": self.name}


class ParameterValidationError(RestcaseException, ValueError):
    """Raised by (or on behalf of) a template's validate hook."""

    code = ErrorCode.VALIDATION

    def __init__(self, message: str = "Parameter validation failed.") -> None:
        super().__init__(message)


def _for(name: str | None) -> str:
    return f" for '{name}'" if name else ""


class NaNValidationError(ParameterValidationError):
    def __init__(self, value: object, name: str | None = None) -> None:
        super().__init__(f"Expected a valid number{_for(name)}, but received '{value}'.")


class MinValidationError(ParameterValidationError):
    def __init__(self, *, value: float, min: float, name: str | None = None) -> None:  # noqa: A002
        super().__init__(f"Expected a number less than or equal to '{_num(min)}'{_for(name)}, but received '{_num(value)}'.")


class MaxValidationError(ParameterValidationError):
    def __init__(self, *, value: float, max: float, name: str | None = None) -> None:  # noqa: A002
        super().__init__(f"Expected a number more than or equal to '{_num(max)}'{_for(name)}, but received '{_num(value)}'.")


class MinMaxValidationError(ParameterValidationError):
    def __init__(self, *, value: float, min: float, max: float, name: str | None = None) -> None:  # noqa: A002
        super().__init__(
            f"Expected a number between '{_num(min)}' and '{_num(max)}'{_for(name)}, but received '{_num(value)}'."
        )


def _num(v: float) -> str:
    """Render integral floats without the trailing .0"""
    return str(int(v)) if isinstance(v, float) and v.is_integer() else str(v)


class AbortError(RestcaseException):
    """A cancellable call was cancelled before it settled."""

    code = ErrorCode.ABORTED

    def __init__(self, reason: object = None) -> None:
        self.reason = reason
        super().__init__(ABORT_MESSAGE)


class ApiError(RestcaseException):
    """The remote API answered with a non-success status."""

    code = ErrorCode.API_ERROR

    def __init__(self, message: str, response: object = None) -> None:
        self.response = response
        super().__init__(message)

    @property
    def status_code(self) -> int | None:
        return getattr(self.response, "status_code", None)

    def details(self) -> JsonDict:
        return {"status_code": self.status_code} if self.status_code is not None else {}


class RateLimitError(ApiError):
    code = ErrorCode.RATE_LIMITED
    recoverable = True


class ExpiredTokenError(ApiError):
    code = ErrorCode.EXPIRED_TOKEN
