"""Slug suggestion engine.

Turns a URL (plus optional title/description) into a short, memorable
slug and a one-line reasoning. The AI provider is asked first; if the
call fails after retries, or its reply has no usable JSON, a deterministic
slug is derived from the URL itself. ``generate_slug`` therefore always
returns a suggestion.

Example:
    engine = SlugSuggestionEngine(AnthropicCompletionClient())
    suggestion = await engine.generate_slug(PromptContext(url="https://example.com/blog"))
    suggestion.suggested_slug  # e.g. "blog"
"""

import json
import logging
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit

from pydantic import BaseModel

from telepath.db.models import SlugStyle
from telepath.errors import AIServiceError, TelepathError
from telepath.services.ai_client import CompletionClient
from telepath.services.dub_client import DEFAULT_DOMAIN
from telepath.services.retry import RetryPolicy
from telepath.utils.validators import sanitize_slug

logger = logging.getLogger(__name__)

FALLBACK_REASONING = "Generated from URL domain/path"
CUSTOM_SLUG_REASONING = "Custom slug provided by user"

# Path segments at least this long are too unwieldy to become a slug
_MAX_SEGMENT_LENGTH = 15
_LAST_RESORT_SLUG = "link"

STYLE_INSTRUCTIONS: dict[SlugStyle, str] = {
    SlugStyle.intelligent: (
        "Create intelligent, context-aware slugs (4-8 characters) that balance "
        "brevity with meaning."
    ),
    SlugStyle.short: (
        "PRIORITY: Create very short slugs (3-5 characters) while maintaining "
        "relevance. Prefer abbreviations and single words."
    ),
    SlugStyle.descriptive: (
        "Create longer, more descriptive slugs (8-15 characters) that clearly "
        "explain the content. Readability is more important than brevity."
    ),
    SlugStyle.technical: (
        "Use technical conventions: kebab-case, abbreviations, and "
        "developer-friendly terms. Follow common programming naming patterns."
    ),
}


@dataclass
class PromptContext:
    """What the engine knows about the URL being shortened."""

    url: str
    domain: str | None = None
    title: str | None = None
    description: str | None = None


class LinkSuggestion(BaseModel):
    """A candidate short link awaiting the user's decision.

    Mutated in place when the user supplies a custom slug or picks a
    different domain.
    """

    url: str
    suggested_slug: str
    domain: str
    reasoning: str

    @property
    def short_link(self) -> str:
        return f"{self.domain}/{self.suggested_slug}"


def build_prompt(context: PromptContext, style: SlugStyle = SlugStyle.intelligent) -> str:
    """Build the natural-language instruction sent to the AI provider."""
    lines = [
        "You are an expert at creating short, memorable, and relevant URL slugs.",
        "",
        "Given the following URL information:",
        f"- URL: {context.url}",
        f"- Domain: {context.domain or DEFAULT_DOMAIN}",
    ]
    if context.title:
        lines.append(f"- Title: {context.title}")
    if context.description:
        lines.append(f"- Description: {context.description}")
    lines += [
        "",
        STYLE_INSTRUCTIONS.get(style, STYLE_INSTRUCTIONS[SlugStyle.intelligent]),
        "",
        "Generate a short, memorable slug that:",
        "1. Is relevant to the content/purpose of the URL",
        "2. Is easy to remember and type",
        "3. Uses only lowercase letters, numbers, and hyphens",
        '4. Avoids generic terms like "link", "url", "click"',
        "5. Is concise but descriptive",
        "",
        "Respond in exactly this JSON format:",
        "{",
        '  "slug": "your-suggested-slug",',
        '  "reasoning": "Brief explanation of why this slug is good"',
        "}",
    ]
    return "\n".join(lines)


def parse_response(text: str) -> tuple[str, str]:
    """Extract ``(slug, reasoning)`` from an AI reply.

    Only the first ``{`` in the text is tried as the start of a JSON
    object; prose before or after it is ignored.

    Raises:
        AIServiceError: No JSON object, invalid JSON, missing/empty fields,
            or a slug that sanitizes to nothing.
    """
    start = text.find("{")
    if start == -1:
        raise AIServiceError("AI response contained no JSON object")
    try:
        parsed, _ = json.JSONDecoder().raw_decode(text[start:])
    except json.JSONDecodeError as e:
        raise AIServiceError(f"AI response JSON was invalid: {e}") from e

    if not isinstance(parsed, dict):
        raise AIServiceError("AI response JSON was not an object")
    slug = parsed.get("slug")
    reasoning = parsed.get("reasoning")
    if not slug or not reasoning or not isinstance(slug, str):
        raise AIServiceError("AI response missing 'slug' or 'reasoning'")

    clean = sanitize_slug(slug)
    if not clean:
        raise AIServiceError(f"AI slug {slug!r} has no usable characters")
    return clean, str(reasoning)


def fallback_slug(url: str) -> str:
    """Derive a slug from the URL alone. Deterministic.

    The rightmost path segment shorter than 15 characters that still has
    usable characters wins; otherwise the first label of the host
    (without ``www.``) is used.
    """
    try:
        parts = urlsplit(url)
        host = parts.hostname or ""
    except ValueError:
        return _LAST_RESORT_SLUG

    if host.startswith("www."):
        host = host[4:]
    slug = sanitize_slug(host.split(".")[0])

    segments = [s for s in parts.path.split("/") if s]
    for segment in reversed(segments):
        if len(segment) >= _MAX_SEGMENT_LENGTH:
            continue
        candidate = sanitize_slug(unquote(segment))
        if candidate:
            slug = candidate
            break

    return slug or _LAST_RESORT_SLUG


class SlugSuggestionEngine:
    """Produces LinkSuggestions, degrading gracefully when the AI fails.

    Attributes:
        _client: CompletionClient, or None to always use the fallback.
        _retry: RetryPolicy wrapping each completion call.
        _default_domain: Domain used when the context names none.
    """

    def __init__(
        self,
        client: CompletionClient | None,
        retry: RetryPolicy | None = None,
        default_domain: str = DEFAULT_DOMAIN,
    ) -> None:
        self._client = client
        self._retry = retry or RetryPolicy()
        self._default_domain = default_domain

    async def generate_slug(
        self,
        context: PromptContext,
        style: SlugStyle = SlugStyle.intelligent,
    ) -> LinkSuggestion:
        """Suggest a slug for the context's URL. Never raises TelepathError."""
        domain = context.domain or self._default_domain
        try:
            slug, reasoning = await self._suggest_with_ai(context, style)
        except AIServiceError as e:
            logger.warning("AI slug generation failed, using fallback: %s", e)
            return self.fallback(context)

        return LinkSuggestion(
            url=context.url,
            suggested_slug=slug,
            domain=domain,
            reasoning=reasoning,
        )

    def fallback(self, context: PromptContext) -> LinkSuggestion:
        """Build the deterministic suggestion for a context."""
        return LinkSuggestion(
            url=context.url,
            suggested_slug=fallback_slug(context.url),
            domain=context.domain or self._default_domain,
            reasoning=FALLBACK_REASONING,
        )

    async def _suggest_with_ai(
        self, context: PromptContext, style: SlugStyle
    ) -> tuple[str, str]:
        if self._client is None:
            raise AIServiceError("AI provider not configured")

        prompt = build_prompt(context, style)
        client = self._client
        try:
            text = await self._retry.run(lambda: client.complete(prompt), "ai_complete")
        except AIServiceError:
            raise
        except TelepathError as e:
            raise AIServiceError(f"AI completion failed after retries: {e}") from e
        return parse_response(text)
