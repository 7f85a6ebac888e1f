"""Unified error handling for restcase.

- ErrorCode / classify_exception: machine-readable failure classification
- ClientError: structured, serializable error view
- Exception hierarchy raised by resolution, validation, cancellation, and API responses
"""

from .errors import (
    ABORT_MESSAGE,
    AbortError,
    ApiError,
    ClientError,
    ErrorCode,
    ExpiredTokenError,
    MaxValidationError,
    MinMaxValidationError,
    MinValidationError,
    MissingParameterError,
    NaNValidationError,
    ParameterValidationError,
    RateLimitError,
    RestcaseException,
    classify_exception,
)

__all__ = [
    "ABORT_MESSAGE",
    # Classification
    "ErrorCode", "ClientError", "classify_exception",
    # Exceptions
    "RestcaseException", "MissingParameterError", "AbortError",
    "ApiError", "RateLimitError", "ExpiredTokenError",
    # Validation
    "ParameterValidationError", "NaNValidationError", "MinValidationError",
    "MaxValidationError", "MinMaxValidationError",
]
