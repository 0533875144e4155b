"""Browse, inspect, edit and delete previously created links.

Link buttons carry short display ids (see ShortIdMap) that are resolved
back to provider ids on click.
"""

import logging
from datetime import datetime
from enum import Enum

from telepath.db.models import UserLink
from telepath.errors import InvalidSlugError, NotFoundError, TelepathError
from telepath.handlers.actions import (
    CloseLinks,
    LinkDelete,
    LinkDeleteConfirm,
    LinkDetails,
    LinkEdit,
    LinksPage,
)
from telepath.handlers.context import BotContext
from telepath.handlers.view import (
    AnswerCallback,
    Button,
    EditMessage,
    Keyboard,
    Reply,
    Response,
    md,
    truncate,
)
from telepath.services.link_service import PAGE_SIZE, LinkPage
from telepath.services.session_manager import EditingLinkSlug
from telepath.utils.validators import MAX_CUSTOM_SLUG_LENGTH, is_valid_slug

logger = logging.getLogger(__name__)

LINK_NOT_FOUND = "Link not found"
INVALID_SLUG_TEXT = (
    "❌ Invalid slug. Use only letters, numbers, hyphens, and underscores "
    f"(max {MAX_CUSTOM_SLUG_LENGTH} characters)."
)


class DeleteOutcome(str, Enum):
    """Result of deleting a link from both stores."""

    DELETED = "deleted"
    DELETED_LOCALLY_PROVIDER_FAILED = "deleted_locally_provider_failed"
    NOT_FOUND = "not_found"
    FAILED = "failed"


def _format_timestamp(value: str | None, with_time: bool = False) -> str:
    if not value:
        return "-"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    return parsed.strftime("%Y-%m-%d %H:%M UTC" if with_time else "%Y-%m-%d")


class LinkManagementController:
    """Link list, details and the edit/delete flows."""

    def __init__(self, ctx: BotContext) -> None:
        self._ctx = ctx

    # ── Core operations ────────────────────────────────────────────────

    async def delete_link(self, user_id: int, link_id: str) -> DeleteOutcome:
        """Delete a link at the provider, then locally.

        A provider failure is logged and never blocks the local delete.
        """
        link = await self._ctx.links.get_link(user_id, link_id)
        if link is None:
            return DeleteOutcome.NOT_FOUND

        provider_failed = False
        try:
            await self._ctx.provider.delete_link(link.id)
        except TelepathError as e:
            provider_failed = True
            logger.warning("Provider delete failed for link %s: %s", link.id, e)

        if not await self._ctx.links.delete_link(user_id, link_id):
            return DeleteOutcome.FAILED
        if provider_failed:
            return DeleteOutcome.DELETED_LOCALLY_PROVIDER_FAILED
        return DeleteOutcome.DELETED

    async def edit_slug(self, user_id: int, link_id: str, new_slug: str) -> UserLink:
        """Change a link's slug in the local record only.

        Raises:
            InvalidSlugError: new_slug fails local validation.
            NotFoundError: The link doesn't exist for this user.
        """
        if not is_valid_slug(new_slug):
            raise InvalidSlugError(
                f"Rejected slug edit {new_slug!r}", user_message=INVALID_SLUG_TEXT
            )
        link = await self._ctx.links.get_link(user_id, link_id)
        if link is None:
            raise NotFoundError("UserLink", link_id, user_message=f"❌ {LINK_NOT_FOUND}.")

        updated = await self._ctx.links.update_link(
            user_id,
            link_id,
            {"key": new_slug, "short_link": f"{link.domain}/{new_slug}"},
        )
        if updated is None:
            raise NotFoundError("UserLink", link_id, user_message=f"❌ {LINK_NOT_FOUND}.")
        logger.info("Link %s slug changed %s -> %s", link_id, link.key, new_slug)
        return updated

    # ── Views ──────────────────────────────────────────────────────────

    async def show_links(
        self, user_id: int, page: int = 1, as_edit: bool = False
    ) -> list[Response]:
        result = await self._ctx.links.list_links(user_id, page)

        if result.total_links == 0:
            text = (
                "📄 *Your Short Links*\n\n"
                "You haven't created any short links yet!\n\n"
                "Send me a URL to create your first smart short link. 🚀"
            )
            keyboard: Keyboard = []
        else:
            text = self._render_page(result)
            keyboard = self._page_keyboard(result)

        if as_edit:
            return [AnswerCallback(), EditMessage(text, keyboard)]
        return [Reply(text, keyboard or None)]

    async def show_details(self, user_id: int, short_id: str) -> list[Response]:
        # Leaving the edit prompt through its Cancel button lands here
        if isinstance(self._ctx.sessions.get_state(user_id), EditingLinkSlug):
            self._ctx.sessions.clear(user_id)

        link = await self._resolve(user_id, short_id)
        if link is None:
            return [AnswerCallback(LINK_NOT_FOUND)]

        updated = (
            f"\n*Last Updated:* {_format_timestamp(link.updated_at, with_time=True)}"
            if link.updated_at else ""
        )
        text = (
            "🔗 *Link Details*\n\n"
            f"*Short Link:*\n{md(link.short_link)}\n\n"
            f"*Original URL:*\n{md(link.url)}\n\n"
            f"*Slug:* {md(link.key)}\n"
            f"*Domain:* {md(link.domain)}\n"
            f"*Created:* {_format_timestamp(link.created_at, with_time=True)}\n"
            f"*Clicks:* {link.clicks or 0}"
            f"{updated}\n\n"
            "What would you like to do?"
        )
        keyboard: Keyboard = [
            [
                Button("✏️ Edit Slug", LinkEdit(link_id=short_id)),
                Button("🗑️ Delete", LinkDelete(link_id=short_id)),
            ],
            [Button("⬅️ Back to List", LinksPage(page=1))],
        ]
        return [AnswerCallback(), EditMessage(text, keyboard)]

    async def begin_edit(self, user_id: int, short_id: str) -> list[Response]:
        link = await self._resolve(user_id, short_id)
        if link is None:
            return [AnswerCallback(LINK_NOT_FOUND)]

        self._ctx.sessions.set_state(user_id, EditingLinkSlug(link_id=link.id))
        text = (
            "✏️ *Edit Link Slug*\n\n"
            f"*Current Short Link:*\n{md(link.short_link)}\n\n"
            f"*Current Slug:* {md(link.key)}\n\n"
            "Please send me the new slug you'd like to use:\n"
            "• Use only letters, numbers, hyphens, and underscores\n"
            "• Keep it short and memorable\n"
            "• Type 'cancel' to abort"
        )
        keyboard: Keyboard = [[Button("❌ Cancel", LinkDetails(link_id=short_id))]]
        return [AnswerCallback(), EditMessage(text, keyboard)]

    async def handle_edit_message(
        self, user_id: int, link_id: str, text: str
    ) -> list[Response]:
        """Treat a text message as the new slug for the link being edited."""
        new_slug = text.strip()
        if new_slug.lower() == "cancel":
            self._ctx.sessions.clear(user_id)
            return [Reply("✏️ Edit cancelled.")]

        link = await self._ctx.links.get_link(user_id, link_id)
        if link is None:
            self._ctx.sessions.clear(user_id)
            return [Reply(f"❌ {LINK_NOT_FOUND}.")]

        if not is_valid_slug(new_slug):
            return [Reply(INVALID_SLUG_TEXT)]

        updated = await self.edit_slug(user_id, link_id, new_slug)
        self._ctx.sessions.clear(user_id)
        return [
            Reply(
                "✅ *Link Updated*\n\n"
                f"*Old Link:* {md(link.short_link)}\n"
                f"*New Link:* {md(updated.short_link)}\n\n"
                "ℹ️ Only your local link record was changed. The short link "
                "at the provider still uses the old slug."
            )
        ]

    async def prompt_delete(self, user_id: int, short_id: str) -> list[Response]:
        link = await self._resolve(user_id, short_id)
        if link is None:
            return [AnswerCallback(LINK_NOT_FOUND)]

        text = (
            "🗑️ *Delete Link*\n\n"
            "Are you sure you want to delete this link?\n\n"
            f"*Short Link:*\n{md(link.short_link)}\n\n"
            f"*Original URL:*\n{md(truncate(link.url, 60))}\n\n"
            "⚠️ *This action cannot be undone!*"
        )
        keyboard: Keyboard = [
            [
                Button("🗑️ Yes, Delete", LinkDeleteConfirm(link_id=short_id)),
                Button("❌ Cancel", LinkDetails(link_id=short_id)),
            ]
        ]
        return [AnswerCallback(), EditMessage(text, keyboard)]

    async def confirm_delete(self, user_id: int, short_id: str) -> list[Response]:
        link_id = self._ctx.short_ids.resolve(short_id)
        link = await self._ctx.links.get_link(user_id, link_id)
        outcome = await self.delete_link(user_id, link_id)

        if outcome is DeleteOutcome.NOT_FOUND or link is None:
            return [AnswerCallback(LINK_NOT_FOUND)]
        if outcome is DeleteOutcome.FAILED:
            return [AnswerCallback("Failed to delete link")]

        text = (
            "✅ *Link Deleted*\n\n"
            f"The link has been deleted:\n{md(link.short_link)}"
        )
        if outcome is DeleteOutcome.DELETED_LOCALLY_PROVIDER_FAILED:
            text += (
                "\n\n⚠️ It was removed from your list, but the provider could "
                "not be reached, so the short link may still work."
            )
        else:
            text += "\n\nThis link will no longer work."
        keyboard: Keyboard = [[Button("📄 Back to Links", LinksPage(page=1))]]
        return [AnswerCallback("Link deleted"), EditMessage(text, keyboard)]

    async def close(self) -> list[Response]:
        return [AnswerCallback(), EditMessage("📄 Link list closed. Use /links to open it again.")]

    async def show_stats(self, user_id: int) -> list[Response]:
        stats = await self._ctx.links.get_stats(user_id)
        if stats.total_links == 0:
            return [Reply("📊 *Your Link Stats*\n\nNo links yet. Send me a URL to create one!")]

        lines = [
            "📊 *Your Link Stats*\n",
            f"*Total Links:* {stats.total_links}",
            f"*Total Clicks:* {stats.total_clicks}",
        ]
        if stats.most_clicked_link is not None and stats.most_clicked_link.clicks:
            top = stats.most_clicked_link
            lines.append(f"*Most Clicked:* {md(top.short_link)} ({top.clicks} clicks)")
        lines.append("\n*Recent Links:*")
        lines += [
            f"• {md(link.short_link)} ({_format_timestamp(link.created_at)})"
            for link in stats.recent_links
        ]
        return [Reply("\n".join(lines))]

    async def search(self, user_id: int, query: str) -> list[Response]:
        query = query.strip()
        if not query:
            return [Reply("🔍 Usage: /search <text>\n\nSearches your links' URLs, slugs and titles.")]

        results = await self._ctx.links.search_links(user_id, query)
        if not results:
            return [Reply(f"🔍 No links match \"{md(query)}\".")]

        shown = results[:PAGE_SIZE]
        lines = [f"🔍 *Search results for* \"{md(query)}\" ({len(results)} found)\n"]
        for index, link in enumerate(shown, start=1):
            lines.append(f"*{index}.* {md(link.short_link)}\n📝 {md(truncate(link.url, 50))}\n")
        if len(results) > len(shown):
            lines.append(f"…and {len(results) - len(shown)} more. Refine your search to narrow it down.")
        return [Reply("\n".join(lines), self._link_buttons(shown))]

    # ── Rendering ──────────────────────────────────────────────────────

    def _render_page(self, result: LinkPage) -> str:
        text = (
            f"📄 *Your Short Links* (Page {result.current_page}/{result.total_pages})\n"
            f"📊 *Total:* {result.total_links} links\n\n"
        )
        first = (result.current_page - 1) * PAGE_SIZE
        for index, link in enumerate(result.links, start=first + 1):
            clicks = f" • {link.clicks} clicks" if link.clicks else ""
            text += (
                f"*{index}.* {md(link.short_link)}\n"
                f"📝 {md(truncate(link.url, 50))}\n"
                f"📅 {_format_timestamp(link.created_at)}{clicks}\n\n"
            )
        return text

    def _page_keyboard(self, result: LinkPage) -> Keyboard:
        keyboard = self._link_buttons(result.links)

        if result.total_pages > 1:
            pagination: list[Button] = []
            if result.current_page > 1:
                pagination.append(Button("⬅️ Previous", LinksPage(page=result.current_page - 1)))
            if result.current_page < result.total_pages:
                pagination.append(Button("Next ➡️", LinksPage(page=result.current_page + 1)))
            keyboard.append(pagination)

        keyboard.append([
            Button("🔄 Refresh", LinksPage(page=result.current_page)),
            Button("❌ Close", CloseLinks()),
        ])
        return keyboard

    def _link_buttons(self, links: list[UserLink]) -> Keyboard:
        """Detail buttons, two per row, registering each short id."""
        buttons = [
            Button(f"🔗 {link.key}", LinkDetails(link_id=self._ctx.short_ids.register(link.id)))
            for link in links
        ]
        return [buttons[i:i + 2] for i in range(0, len(buttons), 2)]

    async def _resolve(self, user_id: int, short_id: str) -> UserLink | None:
        return await self._ctx.links.get_link(user_id, self._ctx.short_ids.resolve(short_id))
