"""Shared retry-with-backoff policy for outbound calls.

Both the AI completion client and the link provider gateway route every
remote call through ``with_retry``. Failures are classified into the
Telepath error taxonomy first; only retryable kinds (network failure,
rate limit) are re-attempted, with the delay doubling after each attempt.

Example:
    policy = RetryPolicy(max_attempts=3, initial_delay=1.0)
    link = await policy.run(lambda: client.post("/links", json=body), "create_link")
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from telepath.errors import classify_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    *,
    operation_name: str | None = None,
    sleep: SleepFn = asyncio.sleep,
) -> T:
    """Run an async operation, retrying transient failures with backoff.

    Args:
        operation: Zero-argument coroutine factory to attempt.
        max_attempts: Maximum number of invocations (>= 1).
        initial_delay: Delay in seconds before the second attempt; doubles
            after every further failure.
        operation_name: Label used in log lines and error classification.
        sleep: Awaitable sleep function (injectable for tests).

    Returns:
        Whatever the operation returns on its first successful attempt.

    Raises:
        TelepathError: The classified error of the final failed attempt,
            or of the first non-retryable failure.
        ValueError: If max_attempts is less than 1.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    name = operation_name or getattr(operation, "__name__", "operation")
    delay = initial_delay
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            error = classify_error(exc, name)
            if attempt >= max_attempts or not error.is_retryable:
                if error is exc:
                    raise
                raise error from exc

            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                name, attempt, max_attempts, delay, error,
            )
            await sleep(delay)
            delay *= 2
            attempt += 1


@dataclass
class RetryPolicy:
    """Reusable retry configuration shared by the outbound clients.

    Attributes:
        max_attempts: Maximum invocations per call.
        initial_delay: Delay in seconds before the first retry.
        sleep: Awaitable sleep function (tests pass a recorder).
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    sleep: SleepFn = field(default=asyncio.sleep, repr=False)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str | None = None,
    ) -> T:
        """Run ``operation`` under this policy."""
        return await with_retry(
            operation,
            max_attempts=self.max_attempts,
            initial_delay=self.initial_delay,
            operation_name=operation_name,
            sleep=self.sleep,
        )
