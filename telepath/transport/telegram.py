"""python-telegram-bot adapter.

Turns Telegram updates into Dispatcher calls and the Dispatcher's
responses into Bot API calls. No conversation logic lives here.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from telegram import (
    Bot,
    BotCommand,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    MenuButtonCommands,
    Update,
)
from telegram.constants import ChatAction, ParseMode
from telegram.error import BadRequest, RetryAfter, TelegramError
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from telepath.handlers import messages
from telepath.handlers.dispatcher import COMMANDS, Dispatcher
from telepath.handlers.view import AnswerCallback, EditMessage, Keyboard, Reply, Response
from telepath.services.bot_config_service import BotConfigService, ConfigComponent

logger = logging.getLogger(__name__)

BOT_NAME = "Telepath - AI Short Links"
BOT_SHORT_DESCRIPTION = "AI-powered short link generator with intelligent slug creation"
BOT_DESCRIPTION = (
    "🚀 Telepath creates intelligent short links using AI! Send any URL and "
    "get a meaningful, memorable short link powered by Claude and Dub.\n\n"
    "✨ Features:\n• AI-powered slug generation\n• Custom domain support\n"
    "• Link management\n• Personalized preferences\n\n"
    "Just send me a URL to get started!"
)
BOT_COMMANDS = [
    BotCommand("start", "Start or restart the bot"),
    BotCommand("help", "Show help and usage instructions"),
    BotCommand("about", "About Telepath bot"),
    BotCommand("links", "View and manage your short links"),
    BotCommand("stats", "Totals for your short links"),
    BotCommand("search", "Search your short links"),
    BotCommand("settings", "Configure your preferences"),
]


def to_markup(keyboard: Keyboard | None) -> InlineKeyboardMarkup | None:
    if not keyboard:
        return None
    return InlineKeyboardMarkup(
        [
            [InlineKeyboardButton(b.text, callback_data=b.callback_data) for b in row]
            for row in keyboard
        ]
    )


class TelegramTransport:
    """Wires a Dispatcher into a python-telegram-bot Application."""

    def __init__(self, dispatcher: Dispatcher) -> None:
        self._dispatcher = dispatcher

    def build_application(
        self,
        token: str,
        post_init: Callable[[Application], Awaitable[None]] | None = None,
        post_shutdown: Callable[[Application], Awaitable[None]] | None = None,
    ) -> Application:
        builder = Application.builder().token(token)
        if post_init is not None:
            builder = builder.post_init(post_init)
        if post_shutdown is not None:
            builder = builder.post_shutdown(post_shutdown)
        application = builder.build()
        self.register(application)
        return application

    def register(self, application: Application) -> None:
        """Attach all update handlers to an Application."""
        for command in COMMANDS:
            application.add_handler(CommandHandler(command, self.on_command))
        application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self.on_text))
        application.add_handler(CallbackQueryHandler(self.on_callback))
        application.add_handler(
            MessageHandler(~filters.TEXT & ~filters.StatusUpdate.ALL, self.on_non_text)
        )
        application.add_error_handler(self.on_error)

    # ── Update handlers ────────────────────────────────────────────────

    async def on_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if update.effective_user is None or update.message is None or not update.message.text:
            return
        command = update.message.text.split()[0].lstrip("/").split("@")[0].lower()
        args = " ".join(context.args or [])
        started = time.monotonic()
        responses = await self._dispatcher.handle_command(update.effective_user.id, command, args)
        await self._send(update, context, responses)
        logger.debug("/%s handled in %.0fms", command, (time.monotonic() - started) * 1000)

    async def on_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if update.effective_user is None or update.message is None or update.message.text is None:
            return
        await self._send_typing(update, context)
        started = time.monotonic()
        responses = await self._dispatcher.handle_text(update.effective_user.id, update.message.text)
        await self._send(update, context, responses)
        logger.debug("Text message handled in %.0fms", (time.monotonic() - started) * 1000)

    async def on_callback(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        query = update.callback_query
        if query is None or update.effective_user is None:
            return
        started = time.monotonic()
        responses = await self._dispatcher.handle_callback(update.effective_user.id, query.data or "")
        await self._send(update, context, responses)
        logger.debug("Callback handled in %.0fms", (time.monotonic() - started) * 1000)

    async def on_non_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if update.effective_user is None or update.message is None:
            return
        responses = await self._dispatcher.handle_non_text(update.effective_user.id)
        await self._send(update, context, responses)

    async def on_error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """Last-resort handler: log and apologise, never re-raise."""
        user_id = None
        if isinstance(update, Update) and update.effective_user:
            user_id = update.effective_user.id
        logger.error("Unhandled error for user %s", user_id, exc_info=context.error)

        if isinstance(update, Update) and update.effective_chat is not None:
            try:
                await context.bot.send_message(update.effective_chat.id, messages.FALLBACK_APOLOGY)
            except TelegramError as e:
                logger.warning("Could not deliver fallback apology: %s", e)

    # ── Output ─────────────────────────────────────────────────────────

    async def _send(
        self,
        update: Update,
        context: ContextTypes.DEFAULT_TYPE,
        responses: list[Response],
    ) -> None:
        query = update.callback_query
        answered = False
        for response in responses:
            if isinstance(response, AnswerCallback):
                if query is not None and not answered:
                    await query.answer(response.text, show_alert=response.show_alert)
                    answered = True
            elif isinstance(response, EditMessage) and query is not None and query.message is not None:
                await self._edit(query, response)
            elif isinstance(response, (Reply, EditMessage)) and update.effective_chat is not None:
                await self._send_message(
                    context.bot, update.effective_chat.id, response.text, response.keyboard
                )
        if query is not None and not answered:
            await query.answer()

    async def _send_message(
        self, bot: Bot, chat_id: int, text: str, keyboard: Keyboard | None
    ) -> None:
        markup = to_markup(keyboard)
        try:
            await bot.send_message(chat_id, text, parse_mode=ParseMode.MARKDOWN, reply_markup=markup)
        except BadRequest as e:
            if "parse entities" not in str(e).lower():
                raise
            logger.warning("Markdown rejected, resending as plain text: %s", e)
            await bot.send_message(chat_id, text, reply_markup=markup)

    async def _edit(self, query: Any, response: EditMessage) -> None:
        markup = to_markup(response.keyboard)
        try:
            await query.edit_message_text(
                response.text, parse_mode=ParseMode.MARKDOWN, reply_markup=markup
            )
        except BadRequest as e:
            message = str(e).lower()
            if "not modified" in message:
                logger.debug("Edit skipped: message not modified")
                return
            if "parse entities" not in message:
                raise
            logger.warning("Markdown rejected, editing as plain text: %s", e)
            await query.edit_message_text(response.text, reply_markup=markup)

    async def _send_typing(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if update.effective_chat is None:
            return
        try:
            await context.bot.send_chat_action(update.effective_chat.id, ChatAction.TYPING)
        except TelegramError as e:
            logger.debug("Typing indicator failed: %s", e)


async def configure_bot_profile(bot: Bot, bot_config: BotConfigService) -> bool:
    """Run the one-time Telegram profile setup, skipping completed steps.

    Returns:
        True if every step is now done; False if interrupted (the
        remaining steps run on the next attempt).
    """
    if await bot_config.is_configuration_completed():
        logger.info("Bot configuration already completed, skipping")
        return True

    steps: list[tuple[ConfigComponent, Callable[[], Awaitable[Any]]]] = [
        (ConfigComponent.commands_set, lambda: bot.set_my_commands(BOT_COMMANDS)),
        (ConfigComponent.name_set, lambda: bot.set_my_name(BOT_NAME)),
        (ConfigComponent.description_set, lambda: bot.set_my_description(BOT_DESCRIPTION)),
        (
            ConfigComponent.short_description_set,
            lambda: bot.set_my_short_description(BOT_SHORT_DESCRIPTION),
        ),
        (
            ConfigComponent.menu_button_set,
            lambda: bot.set_chat_menu_button(menu_button=MenuButtonCommands()),
        ),
    ]

    try:
        for component, apply in steps:
            if await bot_config.is_configured(component):
                continue
            await apply()
            await bot_config.mark_configured(component)
    except RetryAfter as e:
        # str(e) includes the wait; the int form of retry_after is deprecated
        logger.warning("Rate limited during bot configuration (%s); resuming on next run", e)
        return False
    except TelegramError as e:
        logger.warning("Could not complete bot configuration: %s", e)
        return False

    await bot_config.mark_configuration_completed()
    logger.info("Bot configuration completed")
    return True
