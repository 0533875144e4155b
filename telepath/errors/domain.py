"""Typed domain exceptions and error classification.

Every failure that can reach a chat handler is expressed as a
``TelepathError`` subclass carrying an E-XXXX code from the registry.
Handlers convert these to the code's user-facing text; the raw message
stays in the logs.

Usage:
    # In a gateway
    raise DuplicateSlugError("Key already exists: ai-tutorial")

    # In a handler
    try:
        await gateway.create_link(url)
    except TelepathError as e:
        await reply(user_message(e))
"""

import logging

import httpx

from telepath.errors.registry import get_error

logger = logging.getLogger(__name__)

_NETWORK_PATTERNS = ("network", "timeout", "timed out", "connection", "502", "503")
_RATE_LIMIT_PATTERNS = ("rate limit", "429", "too many requests")


class TelepathError(Exception):
    """Base exception for all domain errors."""

    code = "E-4999"

    def __init__(self, message: str, user_message: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        error_def = get_error(self.code)
        default = error_def.user_message if error_def else "An unexpected error occurred."
        self.user_message = user_message or default

    @property
    def is_retryable(self) -> bool:
        """Whether the shared retry policy may re-attempt the failed call."""
        error_def = get_error(self.code)
        return bool(error_def and error_def.is_retryable)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ValidationError(TelepathError):
    """Malformed user input. Never retried."""

    code = "E-2001"


class InvalidSlugError(ValidationError):
    """Custom slug failed local validation."""

    code = "E-2002"


class CallbackDecodeError(ValidationError):
    """Button payload could not be decoded into a known action."""

    code = "E-2003"


class NetworkError(TelepathError):
    """Transient network failure. Retried with backoff."""

    code = "E-3001"


class RateLimitError(TelepathError):
    """Remote service throttled the request. Retried with backoff."""

    code = "E-3002"


class ProviderError(TelepathError):
    """Link provider rejected the request."""

    code = "E-3005"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        user_message: str | None = None,
    ) -> None:
        super().__init__(message, user_message)
        self.status_code = status_code


class DuplicateSlugError(ProviderError):
    """Slug already exists on the provider. Maps to HTTP 409."""

    code = "E-3003"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=409)


class InvalidSlugFormatError(ProviderError):
    """Provider refused the slug format. Maps to HTTP 400."""

    code = "E-3004"

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400)


class AIServiceError(TelepathError):
    """AI completion failed or returned unusable output.

    Recovered locally by the slug engine; never shown to the user.
    """

    code = "E-3101"


class NotFoundError(TelepathError):
    """Resource was not found."""

    code = "E-4001"

    def __init__(
        self,
        resource_type: str,
        identifier: str,
        user_message: str | None = None,
    ) -> None:
        super().__init__(f"{resource_type} '{identifier}' not found", user_message)
        self.resource_type = resource_type
        self.identifier = identifier


class ConflictError(TelepathError):
    """Record already exists. Maps to HTTP 409."""

    code = "E-4003"


class ConfigError(TelepathError):
    """Startup configuration is incomplete or invalid."""

    code = "E-4002"


class UnexpectedError(TelepathError):
    """Unclassified failure wrapped with a safe default message."""

    code = "E-4999"


def classify_error(exc: BaseException, operation: str | None = None) -> TelepathError:
    """Map an arbitrary exception into the Telepath error taxonomy.

    Already-classified errors pass through untouched. Transport failures
    and throttling become retryable kinds; anything else is wrapped in
    UnexpectedError and logged with the originating operation.

    Args:
        exc: The exception to classify.
        operation: Name of the operation that raised, for diagnostics.

    Returns:
        A TelepathError instance.
    """
    if isinstance(exc, TelepathError):
        return exc

    if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429:
        return RateLimitError(str(exc))
    if isinstance(exc, httpx.TransportError):
        return NetworkError(str(exc) or type(exc).__name__)

    lower = str(exc).lower()
    if any(p in lower for p in _RATE_LIMIT_PATTERNS):
        return RateLimitError(str(exc))
    if any(p in lower for p in _NETWORK_PATTERNS):
        return NetworkError(str(exc))

    logger.error(
        "Unclassified error in %s: %s",
        operation or "unknown operation",
        exc,
        exc_info=exc,
    )
    return UnexpectedError(str(exc) or type(exc).__name__)


def user_message(exc: BaseException) -> str:
    """Return the safe user-facing text for any exception."""
    if isinstance(exc, TelepathError):
        return exc.user_message
    error_def = get_error(UnexpectedError.code)
    return error_def.user_message if error_def else "An unexpected error occurred."
