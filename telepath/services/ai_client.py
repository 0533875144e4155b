"""Generative-AI completion client.

The slug engine only needs ``complete(prompt) -> text``; this module
binds that to Claude via the Anthropic SDK and maps SDK failures onto the
Telepath error taxonomy so the shared retry policy can act on them.

Environment Variables:
    ANTHROPIC_MODEL: Claude model used for slug suggestions.
        Defaults to "claude-haiku-4-5-20251001".
"""

import logging
import os
from typing import Any, Protocol

import anthropic
from anthropic import AsyncAnthropic

from telepath.errors import AIServiceError, NetworkError, RateLimitError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-haiku-4-5-20251001"


def get_model() -> str:
    """Get the Claude model to use, honouring ANTHROPIC_MODEL."""
    return os.environ.get("ANTHROPIC_MODEL", DEFAULT_MODEL)


class CompletionClient(Protocol):
    """Anything that turns a prompt into text."""

    async def complete(self, prompt: str) -> str: ...


class AnthropicCompletionClient:
    """CompletionClient backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        max_tokens: int = 300,
        client: Any = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Anthropic API key; the SDK falls back to ANTHROPIC_API_KEY.
            model: Model id; defaults to ``get_model()``.
            max_tokens: Completion budget. Slug responses are tiny.
            client: Optional pre-built AsyncAnthropic (tests pass a mock).
        """
        self._client = client or AsyncAnthropic(api_key=api_key or None)
        self._model = model or get_model()
        self._max_tokens = max_tokens

    async def complete(self, prompt: str) -> str:
        """Return the model's text reply to a single user prompt.

        Raises:
            RateLimitError: The API throttled the request.
            NetworkError: Connection failure, timeout or 5xx/overloaded.
            AIServiceError: Any other API error, or an empty reply.
        """
        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.RateLimitError as e:
            raise RateLimitError(f"Anthropic rate limit: {e}") from e
        except anthropic.APIConnectionError as e:
            raise NetworkError(f"Anthropic connection failed: {e}") from e
        except anthropic.APIStatusError as e:
            if e.status_code >= 500:
                raise NetworkError(f"Anthropic returned {e.status_code}") from e
            raise AIServiceError(f"Anthropic request rejected: {e}") from e

        text = "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise AIServiceError("Anthropic returned an empty completion")
        return text
