"""Error code registry with E-XXXX format codes.

This module defines the error code system for Telepath, organizing errors
into categories:
- E-2xxx: Validation errors (bad user input)
- E-3xxx: External service errors (link provider, AI provider)
- E-4xxx: System/internal errors

Each error includes a code, title, the text shown to the chat user, and
whether the shared retry policy may re-attempt the failed call.
"""

from dataclasses import dataclass
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories for error codes."""

    VALIDATION = "validation"  # E-2xxx: Validation errors
    PROVIDER = "provider"  # E-30xx: Link provider errors
    AI = "ai"  # E-31xx: AI provider errors
    SYSTEM = "system"  # E-4xxx: System/internal errors


@dataclass
class ErrorCode:
    """Definition of an error code with metadata.

    Attributes:
        code: Error code in E-XXXX format.
        category: Error category for grouping.
        title: Short title for logs.
        user_message: Safe text shown to the end user.
        is_retryable: Whether the retry policy may re-attempt the call.
    """

    code: str  # E-XXXX format
    category: ErrorCategory
    title: str
    user_message: str
    is_retryable: bool = False


# Error registry - all defined error codes
ERROR_REGISTRY: dict[str, ErrorCode] = {
    # Validation errors (E-2xxx)
    "E-2001": ErrorCode(
        code="E-2001",
        category=ErrorCategory.VALIDATION,
        title="Invalid URL",
        user_message="⚠️ Please send a valid http:// or https:// URL.",
    ),
    "E-2002": ErrorCode(
        code="E-2002",
        category=ErrorCategory.VALIDATION,
        title="Invalid Slug",
        user_message=(
            "❌ Invalid slug. Use only letters, numbers, hyphens, and "
            "underscores (max 50 characters)."
        ),
    ),
    "E-2003": ErrorCode(
        code="E-2003",
        category=ErrorCategory.VALIDATION,
        title="Expired Button",
        user_message="This button has expired. Please start again.",
    ),
    # Link provider errors (E-30xx)
    "E-3001": ErrorCode(
        code="E-3001",
        category=ErrorCategory.PROVIDER,
        title="Network Failure",
        user_message="Network connection failed. Please try again.",
        is_retryable=True,
    ),
    "E-3002": ErrorCode(
        code="E-3002",
        category=ErrorCategory.PROVIDER,
        title="Rate Limit Exceeded",
        user_message="Too many requests. Please wait a moment and try again.",
        is_retryable=True,
    ),
    "E-3003": ErrorCode(
        code="E-3003",
        category=ErrorCategory.PROVIDER,
        title="Duplicate Slug",
        user_message="This slug already exists. Please choose a different one.",
    ),
    "E-3004": ErrorCode(
        code="E-3004",
        category=ErrorCategory.PROVIDER,
        title="Invalid Slug Format",
        user_message=(
            "Invalid slug format. Please use only letters, numbers, and hyphens."
        ),
    ),
    "E-3005": ErrorCode(
        code="E-3005",
        category=ErrorCategory.PROVIDER,
        title="Link Provider Error",
        user_message="Failed to create short link. Please try again.",
    ),
    # AI provider errors (E-31xx)
    "E-3101": ErrorCode(
        code="E-3101",
        category=ErrorCategory.AI,
        title="AI Service Failure",
        user_message="Failed to generate intelligent slug. Using fallback.",
    ),
    # System errors (E-4xxx)
    "E-4001": ErrorCode(
        code="E-4001",
        category=ErrorCategory.SYSTEM,
        title="Not Found",
        user_message="Not found. Please start again.",
    ),
    "E-4002": ErrorCode(
        code="E-4002",
        category=ErrorCategory.SYSTEM,
        title="Configuration Error",
        user_message="Bot configuration error. Please contact the administrator.",
    ),
    "E-4003": ErrorCode(
        code="E-4003",
        category=ErrorCategory.SYSTEM,
        title="Already Exists",
        user_message="This record already exists.",
    ),
    "E-4999": ErrorCode(
        code="E-4999",
        category=ErrorCategory.SYSTEM,
        title="Unexpected Error",
        user_message="An unexpected error occurred. Please try again.",
    ),
}


def get_error(code: str) -> ErrorCode | None:
    """Get error definition by code.

    Args:
        code: Error code in E-XXXX format.

    Returns:
        ErrorCode if found, None otherwise.
    """
    return ERROR_REGISTRY.get(code)


def get_errors_by_category(category: ErrorCategory) -> list[ErrorCode]:
    """Get all errors in a category."""
    return [e for e in ERROR_REGISTRY.values() if e.category == category]
