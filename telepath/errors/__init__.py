"""Error handling framework for Telepath.

This package provides:
- Error code registry with E-XXXX format codes
- Typed exception hierarchy used by services and handlers
- Classification of arbitrary exceptions into that hierarchy

Error categories:
- E-2xxx: Validation errors
- E-30xx: Link provider errors
- E-31xx: AI provider errors
- E-4xxx: System/internal errors
"""

from telepath.errors.domain import (
    AIServiceError,
    CallbackDecodeError,
    ConfigError,
    ConflictError,
    DuplicateSlugError,
    InvalidSlugError,
    InvalidSlugFormatError,
    NetworkError,
    NotFoundError,
    ProviderError,
    RateLimitError,
    TelepathError,
    UnexpectedError,
    ValidationError,
    classify_error,
    user_message,
)
from telepath.errors.registry import (
    ERROR_REGISTRY,
    ErrorCategory,
    ErrorCode,
    get_error,
    get_errors_by_category,
)

__all__ = [
    # Registry
    "ErrorCode",
    "ErrorCategory",
    "ERROR_REGISTRY",
    "get_error",
    "get_errors_by_category",
    # Exceptions
    "TelepathError",
    "ValidationError",
    "InvalidSlugError",
    "CallbackDecodeError",
    "NetworkError",
    "RateLimitError",
    "ProviderError",
    "DuplicateSlugError",
    "InvalidSlugFormatError",
    "AIServiceError",
    "NotFoundError",
    "ConfigError",
    "ConflictError",
    "UnexpectedError",
    # Helpers
    "classify_error",
    "user_message",
]
