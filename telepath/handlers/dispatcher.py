"""Routes inbound events to controllers; the trust boundary.

Every entry point checks access, runs the handler, and converts any
failure into one safe user-facing message. Nothing raised here escapes
to the transport.
"""

import logging
from collections.abc import Awaitable, Callable

from telepath.errors import UnexpectedError, classify_error
from telepath.handlers import actions, messages
from telepath.handlers.context import BotContext
from telepath.handlers.link_creation import LinkCreationController
from telepath.handlers.link_management import LinkManagementController
from telepath.handlers.settings import SettingsController
from telepath.handlers.setup_wizard import SetupWizardController
from telepath.handlers.view import AnswerCallback, Reply, Response, truncate
from telepath.services.session_manager import (
    AwaitingSuggestionDecision,
    EditingLinkSlug,
    InSetupWizard,
)
from telepath.utils.validators import extract_urls

logger = logging.getLogger(__name__)

COMMANDS = ("start", "help", "about", "links", "settings", "stats", "search")

# Telegram truncates callback answers at 200 characters
_MAX_CALLBACK_ANSWER = 200

# User messages that already carry a status marker
_MARKED_PREFIXES = ("❌", "⚠️")


class Dispatcher:
    """Entry points called by the transport for each update.

    Attributes:
        link_creation: URL → suggestion flow.
        setup: Setup wizard.
        link_management: /links, /stats, /search and link buttons.
        settings: /settings menu.
    """

    def __init__(self, ctx: BotContext) -> None:
        self._ctx = ctx
        self.link_creation = LinkCreationController(ctx)
        self.setup = SetupWizardController(ctx)
        self.link_management = LinkManagementController(ctx)
        self.settings = SettingsController(ctx)

    # ── Entry points ───────────────────────────────────────────────────

    async def handle_command(self, user_id: int, command: str, args: str = "") -> list[Response]:
        return await self._guarded(
            user_id, f"command_{command}", lambda: self._route_command(user_id, command, args)
        )

    async def handle_text(self, user_id: int, text: str) -> list[Response]:
        return await self._guarded(user_id, "handle_text", lambda: self._route_text(user_id, text))

    async def handle_callback(self, user_id: int, data: str) -> list[Response]:
        return await self._guarded(
            user_id, "handle_callback", lambda: self._route_callback(user_id, data), callback=True
        )

    async def handle_non_text(self, user_id: int) -> list[Response]:
        async def _reply() -> list[Response]:
            return [Reply(messages.NON_TEXT)]

        return await self._guarded(user_id, "handle_non_text", _reply)

    # ── Routing ────────────────────────────────────────────────────────

    async def _route_command(self, user_id: int, command: str, args: str) -> list[Response]:
        if command == "start":
            if await self._ctx.preferences.is_setup_completed(user_id):
                self._ctx.sessions.clear(user_id)
                return [Reply(messages.WELCOME_BACK)]
            return await self.setup.start(user_id)
        if command == "help":
            return [Reply(messages.HELP)]
        if command == "about":
            return [Reply(messages.ABOUT)]
        if command == "links":
            return await self.link_management.show_links(user_id)
        if command == "settings":
            return await self.settings.show(user_id)
        if command == "stats":
            return await self.link_management.show_stats(user_id)
        if command == "search":
            return await self.link_management.search(user_id, args)
        return [Reply(f"Unknown command /{command}. Try /help.")]

    async def _route_text(self, user_id: int, text: str) -> list[Response]:
        state = self._ctx.sessions.get_state(user_id)
        if isinstance(state, EditingLinkSlug):
            return await self.link_management.handle_edit_message(user_id, state.link_id, text)
        if isinstance(state, AwaitingSuggestionDecision) and state.awaiting_custom_slug:
            return await self.link_creation.handle_custom_slug(user_id, text)
        if isinstance(state, InSetupWizard) and extract_urls(text):
            return [Reply(messages.SETUP_IN_PROGRESS)]
        return await self.link_creation.handle_url_message(user_id, text)

    async def _route_callback(self, user_id: int, data: str) -> list[Response]:
        action = actions.decode(data)
        handler = self._callback_routes().get(type(action))
        if handler is None:
            # Every decodable action has a route; reaching here is a bug
            raise UnexpectedError(f"No route for action {action.action}")
        logger.debug("User %s pressed %s", user_id, action.action)
        return await handler(user_id, action)

    def _callback_routes(self) -> dict[type, Callable[[int, object], Awaitable[list[Response]]]]:
        creation = self.link_creation
        management = self.link_management
        setup = self.setup
        settings = self.settings
        return {
            actions.Confirm: lambda u, a: creation.confirm(u),
            actions.Edit: lambda u, a: creation.edit(u),
            actions.Reject: lambda u, a: creation.reject(u),
            actions.SelectDomain: lambda u, a: creation.select_domain(u, a.data),
            actions.LinksPage: lambda u, a: management.show_links(u, a.page, as_edit=True),
            actions.LinkDetails: lambda u, a: management.show_details(u, a.link_id),
            actions.LinkEdit: lambda u, a: management.begin_edit(u, a.link_id),
            actions.LinkDelete: lambda u, a: management.prompt_delete(u, a.link_id),
            actions.LinkDeleteConfirm: lambda u, a: management.confirm_delete(u, a.link_id),
            actions.CloseLinks: lambda u, a: management.close(),
            actions.SetupNext: lambda u, a: setup.go_to(u, a.step),
            actions.SetupSetDomain: lambda u, a: setup.set_domain(u, a.domain),
            actions.SetupSetStyle: lambda u, a: setup.set_style(u, a.style),
            actions.SetupSetAutoConfirm: lambda u, a: setup.set_auto_confirm(u, a.value),
            actions.SetupSetReasoning: lambda u, a: setup.set_reasoning(u, a.value),
            actions.SetupSkip: lambda u, a: setup.skip(u),
            actions.SetupCancel: lambda u, a: setup.cancel(u),
            actions.SettingsDomain: lambda u, a: settings.choose_domain(u),
            actions.SettingsStyle: lambda u, a: settings.choose_style(u),
            actions.SettingsSetDomain: lambda u, a: settings.set_domain(u, a.domain),
            actions.SettingsSetStyle: lambda u, a: settings.set_style(u, a.style),
            actions.SettingsToggleAutoConfirm: lambda u, a: settings.toggle_auto_confirm(u),
            actions.SettingsToggleReasoning: lambda u, a: settings.toggle_reasoning(u),
            actions.SettingsReset: lambda u, a: settings.reset(u),
            actions.SettingsClose: lambda u, a: settings.close(),
        }

    # ── Trust boundary ─────────────────────────────────────────────────

    async def _guarded(
        self,
        user_id: int,
        operation: str,
        handler: Callable[[], Awaitable[list[Response]]],
        callback: bool = False,
    ) -> list[Response]:
        """Run a handler behind the access gate and catch-all error handling."""
        access = self._ctx.access
        if not access.is_allowed(user_id):
            logger.info("Unauthorized access attempt from user %s (%s)", user_id, operation)
            denied: list[Response] = [Reply(access.unauthorized_message)]
            return [AnswerCallback("Access denied"), *denied] if callback else denied

        try:
            return await handler()
        except Exception as exc:
            error = classify_error(exc, operation)
            if not isinstance(error, UnexpectedError):
                logger.warning("%s failed for user %s: %s", operation, user_id, error)
            text = error.user_message
            reply = Reply(text if text.startswith(_MARKED_PREFIXES) else f"❌ {text}")
            if callback:
                return [AnswerCallback(truncate(text, _MAX_CALLBACK_ANSWER)), reply]
            return [reply]
