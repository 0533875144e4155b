"""URL → suggestion → short link.

A URL message produces a suggestion the user confirms, edits or rejects.
With auto-confirm enabled the link is created straight away and no
session state is kept unless the provider rejects the slug.
"""

import logging

from telepath.db.models import UserLink
from telepath.errors import (
    DuplicateSlugError,
    InvalidSlugError,
    InvalidSlugFormatError,
    ValidationError,
)
from telepath.handlers import messages
from telepath.handlers.actions import Confirm, Edit, Reject, SelectDomain, fits
from telepath.handlers.context import BotContext
from telepath.handlers.view import (
    AnswerCallback,
    Button,
    EditMessage,
    Keyboard,
    Reply,
    Response,
    md,
)
from telepath.services.session_manager import AwaitingSuggestionDecision
from telepath.services.slug_engine import (
    CUSTOM_SLUG_REASONING,
    LinkSuggestion,
    PromptContext,
)
from telepath.utils.validators import (
    MAX_CUSTOM_SLUG_LENGTH,
    extract_urls,
    get_domain_from_url,
    is_short_url,
    is_valid_slug,
    normalize_url,
)

logger = logging.getLogger(__name__)

# Alternative domains offered on a suggestion
MAX_DOMAIN_BUTTONS = 2


def render_suggestion(
    suggestion: LinkSuggestion,
    available_domains: list[str],
    show_reasoning: bool = True,
) -> tuple[str, Keyboard]:
    """Suggestion message and its Confirm/Edit/Reject keyboard."""
    text = (
        "🔗 *Smart Link Generated*\n\n"
        f"*📝 Original URL:*\n{md(suggestion.url)}\n\n"
        f"*🎯 Suggested Short Link:*\n{md(suggestion.short_link)}"
    )
    if show_reasoning:
        text += f"\n\n*🧠 Reasoning:*\n{md(suggestion.reasoning)}"
    text += (
        f"\n\n*🌐 Source Domain:* {md(get_domain_from_url(suggestion.url))}"
        "\n\nChoose an action:"
    )

    keyboard: Keyboard = [
        [Button("✅ Create Link", Confirm()), Button("✏️ Edit Slug", Edit())],
        [Button("❌ Cancel", Reject())],
    ]
    if len(available_domains) > 1:
        domain_row = [
            Button(f"🌐 Use {domain}", SelectDomain(data=domain))
            for domain in available_domains
            if domain != suggestion.domain and fits(SelectDomain(data=domain))
        ][:MAX_DOMAIN_BUTTONS]
        if domain_row:
            keyboard.append(domain_row)
    return text, keyboard


def render_created(link: UserLink) -> str:
    return (
        "✅ *Short Link Created!*\n\n"
        f"🔗 *Your Short Link:*\n{md(link.short_link)}\n\n"
        f"📝 *Original URL:*\n{md(link.url)}\n\n"
        "You can now share this link anywhere! 🚀\n\n"
        "💡 Use /links to manage all your created links."
    )


class LinkCreationController:
    """Handles URL messages and the suggestion decision buttons."""

    def __init__(self, ctx: BotContext) -> None:
        self._ctx = ctx

    async def handle_url_message(self, user_id: int, text: str) -> list[Response]:
        """Suggest a short link for the first URL in text.

        Raises:
            ValidationError: The URL is already a short link.
        """
        urls = extract_urls(text)
        if not urls:
            return [Reply(messages.NO_URL)]

        url = normalize_url(urls[0])
        if is_short_url(url):
            raise ValidationError(
                f"Short URL submitted: {url}",
                user_message=(
                    "⚠️ This URL appears to already be a short link. "
                    "Please provide the original long URL."
                ),
            )

        prefs = await self._ctx.preferences.get(user_id)
        if prefs is None or not prefs.setup_completed:
            return [Reply(messages.SETUP_REQUIRED)]

        suggestion = await self._ctx.engine.generate_slug(
            PromptContext(url=url, domain=prefs.default_domain or self._ctx.default_domain),
            prefs.slug_style,
        )
        available = await self._ctx.provider.list_verified_domains()

        if prefs.auto_confirm:
            try:
                link = await self.create_link(user_id, suggestion)
            except (DuplicateSlugError, InvalidSlugFormatError) as e:
                # Fall back to the manual decision so the slug can be edited
                logger.info("Auto-confirm for user %s rejected: %s", user_id, e.message)
                notice = Reply(f"❌ {e.user_message}")
                return [notice, self._present(user_id, suggestion, available, prefs.show_reasoning)]
            self._ctx.sessions.clear(user_id)
            return [Reply(render_created(link))]

        return [self._present(user_id, suggestion, available, prefs.show_reasoning)]

    def _present(
        self,
        user_id: int,
        suggestion: LinkSuggestion,
        available: list[str],
        show_reasoning: bool,
    ) -> Reply:
        """Store the suggestion as pending and render its decision keyboard."""
        self._ctx.sessions.set_available_domains(user_id, available)
        self._ctx.sessions.set_state(user_id, AwaitingSuggestionDecision(suggestion))
        text, keyboard = render_suggestion(suggestion, available, show_reasoning)
        return Reply(text, keyboard)

    async def create_link(self, user_id: int, suggestion: LinkSuggestion) -> UserLink:
        """Create the suggested link at the provider and record it locally."""
        provider_link = await self._ctx.provider.create_link(
            url=suggestion.url,
            domain=suggestion.domain,
            key=suggestion.suggested_slug,
        )
        return await self._ctx.links.save_link(user_id, provider_link)

    async def confirm(self, user_id: int) -> list[Response]:
        pending = self._pending(user_id)
        if pending is None:
            return [AnswerCallback(messages.SESSION_EXPIRED)]

        link = await self.create_link(user_id, pending.suggestion)
        self._ctx.sessions.clear(user_id)
        return [AnswerCallback("Short link created"), EditMessage(render_created(link))]

    async def edit(self, user_id: int) -> list[Response]:
        pending = self._pending(user_id)
        if pending is None:
            return [AnswerCallback(messages.SESSION_EXPIRED)]

        self._ctx.sessions.set_state(
            user_id, AwaitingSuggestionDecision(pending.suggestion, awaiting_custom_slug=True)
        )
        return [
            AnswerCallback("Send me your custom slug"),
            Reply(
                "✏️ Please send me your custom slug (letters, numbers, hyphens "
                f"and underscores, up to {MAX_CUSTOM_SLUG_LENGTH} characters):"
            ),
        ]

    async def handle_custom_slug(self, user_id: int, text: str) -> list[Response]:
        """Apply a custom slug to the pending suggestion and re-present it.

        Raises:
            InvalidSlugError: The slug has disallowed characters or is too long.
        """
        pending = self._pending(user_id)
        if pending is None:
            return [Reply(messages.SESSION_EXPIRED)]

        slug = text.strip()
        if not is_valid_slug(slug):
            raise InvalidSlugError(f"Rejected custom slug {slug!r}")

        suggestion = pending.suggestion
        suggestion.suggested_slug = slug
        suggestion.reasoning = CUSTOM_SLUG_REASONING
        self._ctx.sessions.set_state(user_id, AwaitingSuggestionDecision(suggestion))

        view_text, keyboard = render_suggestion(
            suggestion,
            self._ctx.sessions.get_available_domains(user_id),
            await self._show_reasoning(user_id),
        )
        return [Reply("✏️ Custom slug updated! Please confirm:"), Reply(view_text, keyboard)]

    async def reject(self, user_id: int) -> list[Response]:
        self._ctx.sessions.clear(user_id)
        return [
            AnswerCallback("Cancelled"),
            EditMessage(
                "❌ *Link creation cancelled*\n\nSend me another URL when you're ready!"
            ),
        ]

    async def select_domain(self, user_id: int, domain: str) -> list[Response]:
        pending = self._pending(user_id)
        if pending is None:
            return [AnswerCallback(messages.SESSION_EXPIRED)]

        pending.suggestion.domain = domain
        text, keyboard = render_suggestion(
            pending.suggestion,
            self._ctx.sessions.get_available_domains(user_id),
            await self._show_reasoning(user_id),
        )
        return [AnswerCallback(f"Domain changed to {domain}"), EditMessage(text, keyboard)]

    def _pending(self, user_id: int) -> AwaitingSuggestionDecision | None:
        state = self._ctx.sessions.get_state(user_id)
        return state if isinstance(state, AwaitingSuggestionDecision) else None

    async def _show_reasoning(self, user_id: int) -> bool:
        prefs = await self._ctx.preferences.get(user_id)
        return prefs.show_reasoning if prefs is not None else True
