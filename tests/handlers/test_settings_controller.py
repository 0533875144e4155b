"""Tests for the /settings menu."""

import pytest

from telepath.db.models import SlugStyle
from telepath.handlers.actions import SettingsSetDomain, SettingsSetStyle
from telepath.handlers.settings import SettingsController
from telepath.handlers.view import AnswerCallback, EditMessage, Reply


@pytest.fixture
def controller(bot_context) -> SettingsController:
    return SettingsController(bot_context)


class TestSettings:
    """Tests for viewing and changing preferences."""

    @pytest.mark.asyncio
    async def test_show_creates_defaults(self, controller, bot_context):
        (reply,) = await controller.show(42)
        assert isinstance(reply, Reply)
        assert "Your Current Settings" in reply.text
        assert "dub.sh" in reply.text
        assert await bot_context.preferences.get(42) is not None

    @pytest.mark.asyncio
    async def test_toggle_auto_confirm(self, controller, bot_context, ready_user):
        responses = await controller.toggle_auto_confirm(ready_user)
        assert responses[0] == AnswerCallback("Auto-confirm on")
        assert isinstance(responses[1], EditMessage)
        assert (await bot_context.preferences.get(ready_user)).auto_confirm is True

        responses = await controller.toggle_auto_confirm(ready_user)
        assert responses[0] == AnswerCallback("Auto-confirm off")

    @pytest.mark.asyncio
    async def test_toggle_reasoning(self, controller, bot_context, ready_user):
        await controller.toggle_reasoning(ready_user)
        assert (await bot_context.preferences.get(ready_user)).show_reasoning is False

    @pytest.mark.asyncio
    async def test_set_style_and_domain(self, controller, bot_context, ready_user):
        await controller.set_style(ready_user, SlugStyle.technical)
        await controller.set_domain(ready_user, "go.example.com")
        prefs = await bot_context.preferences.get(ready_user)
        assert prefs.slug_style == SlugStyle.technical
        assert prefs.default_domain == "go.example.com"

    @pytest.mark.asyncio
    async def test_choose_domain_lists_verified(self, controller, bot_context, ready_user):
        bot_context.provider.list_verified_domains.return_value = ["dub.sh", "go.example.com"]
        responses = await controller.choose_domain(ready_user)
        offered = [
            b.action.domain
            for row in responses[1].keyboard
            for b in row
            if isinstance(b.action, SettingsSetDomain)
        ]
        assert offered == ["dub.sh", "go.example.com"]

    @pytest.mark.asyncio
    async def test_choose_style_marks_current(self, controller, ready_user):
        responses = await controller.choose_style(ready_user)
        current = [
            b for row in responses[1].keyboard for b in row
            if isinstance(b.action, SettingsSetStyle) and b.text.startswith("✅")
        ]
        assert [b.action.style for b in current] == [SlugStyle.intelligent]

    @pytest.mark.asyncio
    async def test_reset_keeps_setup_completed(self, controller, bot_context, ready_user):
        await bot_context.preferences.update(ready_user, {"auto_confirm": True})

        responses = await controller.reset(ready_user)

        assert responses[0] == AnswerCallback("Settings reset to defaults")
        prefs = await bot_context.preferences.get(ready_user)
        assert prefs.auto_confirm is False
        assert prefs.setup_completed is True
