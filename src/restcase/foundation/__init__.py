"""Foundation - building blocks shared by every layer of restcase.

Contains: HTTP vocabulary and type aliases, error handling, parameter
validators, configuration.
"""

from .config import (
    CacheSettings,
    ClientSettings,
    HttpSettings,
    LoggingSettings,
    RestcaseSettings,
    clear_settings_cache,
    get_settings,
)
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
from .types import ApiHeader, ContentType, HttpMethod, Init, JsonDict, JsonValue, Params, is_blank

__all__ = [
    # Types
    "ApiHeader", "ContentType", "HttpMethod", "Init", "JsonDict", "JsonValue", "Params", "is_blank",
    # Errors
    "ABORT_MESSAGE", "ErrorCode", "ClientError", "classify_exception",
    "RestcaseException", "MissingParameterError", "AbortError",
    "ApiError", "RateLimitError", "ExpiredTokenError",
    "ParameterValidationError", "NaNValidationError", "MinValidationError",
    "MaxValidationError", "MinMaxValidationError",
    # Config
    "RestcaseSettings", "ClientSettings", "CacheSettings", "HttpSettings", "LoggingSettings",
    "get_settings", "clear_settings_cache",
]
