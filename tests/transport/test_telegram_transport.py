"""Tests for the python-telegram-bot adapter (no network)."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from telegram.constants import ParseMode
from telegram.error import BadRequest, RetryAfter, TelegramError

from telepath.handlers.actions import Confirm, Reject
from telepath.handlers.view import AnswerCallback, Button, EditMessage, Reply
from telepath.services.bot_config_service import ConfigComponent
from telepath.transport import telegram as transport_module
from telepath.transport.telegram import (
    BOT_COMMANDS,
    TelegramTransport,
    configure_bot_profile,
    to_markup,
)

CHAT_ID = 555


def _message_update(text="https://example.com/post"):
    update = MagicMock()
    update.callback_query = None
    update.effective_user.id = 1
    update.effective_chat.id = CHAT_ID
    update.message.text = text
    return update


def _callback_update(data):
    update = MagicMock()
    update.effective_user.id = 1
    update.effective_chat.id = CHAT_ID
    update.callback_query.data = data
    update.callback_query.answer = AsyncMock()
    update.callback_query.edit_message_text = AsyncMock()
    return update


def _context():
    context = MagicMock()
    context.bot = AsyncMock()
    context.args = []
    return context


class TestToMarkup:
    def test_rows_and_payloads(self):
        markup = to_markup([[Button("Yes", Confirm()), Button("No", Reject())]])
        row = markup.inline_keyboard[0]
        assert [b.text for b in row] == ["Yes", "No"]
        assert row[0].callback_data == '{"action":"confirm"}'

    def test_empty_keyboard_is_none(self):
        assert to_markup([]) is None
        assert to_markup(None) is None


class TestSend:
    """Tests for translating responses into Bot API calls."""

    @pytest.mark.asyncio
    async def test_text_message_round_trip(self):
        dispatcher = MagicMock()
        dispatcher.handle_text = AsyncMock(return_value=[Reply("*hi*")])
        update, context = _message_update(), _context()

        await TelegramTransport(dispatcher).on_text(update, context)

        dispatcher.handle_text.assert_awaited_once_with(1, "https://example.com/post")
        context.bot.send_chat_action.assert_awaited_once()
        context.bot.send_message.assert_awaited_once_with(
            CHAT_ID, "*hi*", parse_mode=ParseMode.MARKDOWN, reply_markup=None
        )

    @pytest.mark.asyncio
    async def test_markdown_failure_falls_back_to_plain(self):
        dispatcher = MagicMock()
        dispatcher.handle_text = AsyncMock(return_value=[Reply("bad_markdown")])
        update, context = _message_update(), _context()
        context.bot.send_message.side_effect = [
            BadRequest("Can't parse entities: can't find end of the entity"),
            None,
        ]

        await TelegramTransport(dispatcher).on_text(update, context)

        assert context.bot.send_message.await_count == 2
        assert "parse_mode" not in context.bot.send_message.await_args.kwargs

    @pytest.mark.asyncio
    async def test_callback_answered_once_and_message_edited(self):
        dispatcher = MagicMock()
        dispatcher.handle_callback = AsyncMock(
            return_value=[
                AnswerCallback("first"),
                AnswerCallback("second"),
                EditMessage("done", [[Button("Yes", Confirm())]]),
            ]
        )
        update, context = _callback_update('{"action":"confirm"}'), _context()

        await TelegramTransport(dispatcher).on_callback(update, context)

        query = update.callback_query
        query.answer.assert_awaited_once_with("first", show_alert=False)
        args, kwargs = query.edit_message_text.await_args
        assert args == ("done",)
        assert kwargs["reply_markup"].inline_keyboard[0][0].text == "Yes"

    @pytest.mark.asyncio
    async def test_callback_always_answered(self):
        dispatcher = MagicMock()
        dispatcher.handle_callback = AsyncMock(return_value=[Reply("text")])
        update, context = _callback_update("{}"), _context()

        await TelegramTransport(dispatcher).on_callback(update, context)

        update.callback_query.answer.assert_awaited_once_with()
        context.bot.send_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_not_modified_edit_is_ignored(self):
        dispatcher = MagicMock()
        dispatcher.handle_callback = AsyncMock(return_value=[EditMessage("same")])
        update, context = _callback_update("{}"), _context()
        update.callback_query.edit_message_text.side_effect = BadRequest(
            "Message is not modified"
        )

        await TelegramTransport(dispatcher).on_callback(update, context)

        assert update.callback_query.edit_message_text.await_count == 1

    @pytest.mark.asyncio
    async def test_command_parsing(self):
        dispatcher = MagicMock()
        dispatcher.handle_command = AsyncMock(return_value=[])
        update, context = _message_update("/search@telepath_bot python tips"), _context()
        context.args = ["python", "tips"]

        await TelegramTransport(dispatcher).on_command(update, context)

        dispatcher.handle_command.assert_awaited_once_with(1, "search", "python tips")

    @pytest.mark.asyncio
    async def test_error_handler_apologises(self):
        update = MagicMock(spec=["effective_user", "effective_chat"])
        context = _context()
        context.error = RuntimeError("boom")
        transport = TelegramTransport(MagicMock())

        # Only real Update instances get an apology
        await transport.on_error(update, context)
        context.bot.send_message.assert_not_awaited()


class TestConfigureBotProfile:
    """Tests for the one-time profile setup."""

    @pytest.mark.asyncio
    async def test_runs_every_step_once(self, bot_config):
        bot = AsyncMock()

        assert await configure_bot_profile(bot, bot_config) is True
        assert await configure_bot_profile(bot, bot_config) is True

        bot.set_my_commands.assert_awaited_once_with(BOT_COMMANDS)
        bot.set_my_name.assert_awaited_once()
        bot.set_my_description.assert_awaited_once()
        bot.set_my_short_description.assert_awaited_once()
        bot.set_chat_menu_button.assert_awaited_once()
        assert await bot_config.is_configuration_completed()

    @pytest.mark.asyncio
    async def test_rate_limit_resumes_on_next_run(self, bot_config, caplog, recwarn):
        bot = AsyncMock()
        bot.set_my_name.side_effect = RetryAfter(30)

        assert await configure_bot_profile(bot, bot_config) is False
        assert "Rate limited" in caplog.text
        assert "Retry in 30" in caplog.text
        assert not [w for w in recwarn if w.filename == transport_module.__file__]
        assert await bot_config.is_configured(ConfigComponent.commands_set)
        assert not await bot_config.is_configuration_completed()

        bot.set_my_name.side_effect = None
        assert await configure_bot_profile(bot, bot_config) is True
        bot.set_my_commands.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_telegram_error_returns_false(self, bot_config):
        bot = AsyncMock()
        bot.set_my_commands.side_effect = TelegramError("Unauthorized")
        assert await configure_bot_profile(bot, bot_config) is False
        assert not await bot_config.is_configured(ConfigComponent.commands_set)
