"""Tests for the URL → suggestion → short link flow."""

import pytest

from telepath.errors import (
    DuplicateSlugError,
    InvalidSlugError,
    InvalidSlugFormatError,
    ValidationError,
)
from telepath.handlers import messages
from telepath.handlers.actions import Confirm, Edit, Reject, SelectDomain
from telepath.handlers.link_creation import LinkCreationController, render_suggestion
from telepath.handlers.view import AnswerCallback, EditMessage, Reply
from telepath.services.session_manager import AwaitingSuggestionDecision, Idle
from telepath.services.slug_engine import CUSTOM_SLUG_REASONING, LinkSuggestion

URL_TEXT = "check this out https://example.com/some/very-long-path-name"


@pytest.fixture
def controller(bot_context) -> LinkCreationController:
    return LinkCreationController(bot_context)


def _suggestion(**overrides) -> LinkSuggestion:
    values = dict(
        url="https://example.com/post",
        suggested_slug="post",
        domain="dub.sh",
        reasoning="Matches the path",
    )
    values.update(overrides)
    return LinkSuggestion(**values)


class TestRenderSuggestion:
    def test_decision_buttons(self):
        text, keyboard = render_suggestion(_suggestion(), [])
        assert "dub.sh/post" in text
        assert "Matches the path" in text
        actions = [button.action for row in keyboard for button in row]
        assert actions == [Confirm(), Edit(), Reject()]

    def test_reasoning_hidden(self):
        text, _ = render_suggestion(_suggestion(), [], show_reasoning=False)
        assert "Matches the path" not in text

    def test_domain_buttons_exclude_current_and_cap_at_two(self):
        domains = ["dub.sh", "a.example.com", "b.example.com", "c.example.com"]
        _, keyboard = render_suggestion(_suggestion(), domains)
        assert [b.action for b in keyboard[-1]] == [
            SelectDomain(data="a.example.com"),
            SelectDomain(data="b.example.com"),
        ]

    def test_single_domain_offers_no_switch(self):
        _, keyboard = render_suggestion(_suggestion(), ["dub.sh"])
        assert len(keyboard) == 2


class TestHandleUrlMessage:
    """Tests for handle_url_message."""

    @pytest.mark.asyncio
    async def test_suggests_and_waits_for_decision(self, controller, bot_context, ready_user):
        responses = await controller.handle_url_message(ready_user, URL_TEXT)

        assert len(responses) == 1
        reply = responses[0]
        assert isinstance(reply, Reply)
        assert "dub.sh/some" in reply.text
        assert reply.keyboard[0][0].action == Confirm()

        state = bot_context.sessions.get_state(ready_user)
        assert isinstance(state, AwaitingSuggestionDecision)
        assert state.suggestion.suggested_slug == "some"
        assert state.suggestion.url == "https://example.com/some/very-long-path-name"
        bot_context.provider.create_link.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_url(self, controller, ready_user):
        responses = await controller.handle_url_message(ready_user, "hello there")
        assert responses == [Reply(messages.NO_URL)]

    @pytest.mark.asyncio
    async def test_short_url_rejected(self, controller, ready_user):
        with pytest.raises(ValidationError) as exc_info:
            await controller.handle_url_message(ready_user, "https://bit.ly/abc")
        assert "already be a short link" in exc_info.value.user_message

    @pytest.mark.asyncio
    async def test_setup_required(self, controller, bot_context):
        responses = await controller.handle_url_message(555, URL_TEXT)
        assert responses == [Reply(messages.SETUP_REQUIRED)]
        assert isinstance(bot_context.sessions.get_state(555), Idle)

    @pytest.mark.asyncio
    async def test_auto_confirm_creates_immediately(self, controller, bot_context, ready_user):
        await bot_context.preferences.update(ready_user, {"auto_confirm": True})

        responses = await controller.handle_url_message(ready_user, URL_TEXT)

        bot_context.provider.create_link.assert_awaited_once_with(
            url="https://example.com/some/very-long-path-name", domain="dub.sh", key="some"
        )
        assert "Short Link Created" in responses[0].text
        assert isinstance(bot_context.sessions.get_state(ready_user), Idle)
        assert (await bot_context.links.list_links(ready_user)).total_links == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [DuplicateSlugError("Key already exists"), InvalidSlugFormatError("Invalid key")],
    )
    async def test_auto_confirm_rejected_slug_offers_edit(
        self, controller, bot_context, ready_user, error
    ):
        """A slug refused during auto-confirm falls back to the decision keyboard."""
        await bot_context.preferences.update(ready_user, {"auto_confirm": True})
        bot_context.provider.create_link.side_effect = error

        notice, prompt = await controller.handle_url_message(ready_user, URL_TEXT)

        assert notice == Reply(f"❌ {error.user_message}")
        actions = [button.action for row in prompt.keyboard for button in row]
        assert Edit() in actions
        state = bot_context.sessions.get_state(ready_user)
        assert isinstance(state, AwaitingSuggestionDecision)
        assert state.suggestion.suggested_slug == "some"
        assert (await bot_context.links.list_links(ready_user)).total_links == 0

    @pytest.mark.asyncio
    async def test_uses_preferred_domain(self, controller, bot_context, ready_user):
        await bot_context.preferences.update(ready_user, {"default_domain": "go.example.com"})
        await controller.handle_url_message(ready_user, URL_TEXT)
        state = bot_context.sessions.get_state(ready_user)
        assert state.suggestion.domain == "go.example.com"


class TestDecisions:
    """Tests for confirm, edit, custom slug, reject and domain switch."""

    @pytest.mark.asyncio
    async def test_confirm_creates_and_clears(self, controller, bot_context, ready_user):
        await controller.handle_url_message(ready_user, URL_TEXT)

        responses = await controller.confirm(ready_user)

        assert isinstance(responses[0], AnswerCallback)
        assert isinstance(responses[1], EditMessage)
        assert "dub.sh/some" in responses[1].text
        assert isinstance(bot_context.sessions.get_state(ready_user), Idle)
        page = await bot_context.links.list_links(ready_user)
        assert [link.key for link in page.links] == ["some"]

    @pytest.mark.asyncio
    async def test_confirm_without_suggestion_expired(self, controller, ready_user):
        assert await controller.confirm(ready_user) == [AnswerCallback(messages.SESSION_EXPIRED)]

    @pytest.mark.asyncio
    async def test_duplicate_slug_keeps_suggestion(self, controller, bot_context, ready_user):
        await controller.handle_url_message(ready_user, URL_TEXT)
        bot_context.provider.create_link.side_effect = DuplicateSlugError("Key already exists")

        with pytest.raises(DuplicateSlugError):
            await controller.confirm(ready_user)

        assert isinstance(bot_context.sessions.get_state(ready_user), AwaitingSuggestionDecision)
        assert (await bot_context.links.list_links(ready_user)).total_links == 0

    @pytest.mark.asyncio
    async def test_custom_slug_then_confirm(self, controller, bot_context, ready_user):
        await controller.handle_url_message(ready_user, URL_TEXT)
        await controller.edit(ready_user)
        assert bot_context.sessions.get_state(ready_user).awaiting_custom_slug

        responses = await controller.handle_custom_slug(ready_user, "  My_Slug-1 ")

        assert responses[0].text.startswith("✏️ Custom slug updated")
        state = bot_context.sessions.get_state(ready_user)
        assert state.awaiting_custom_slug is False
        assert state.suggestion.suggested_slug == "My_Slug-1"
        assert state.suggestion.reasoning == CUSTOM_SLUG_REASONING

        await controller.confirm(ready_user)
        kwargs = bot_context.provider.create_link.await_args.kwargs
        assert kwargs["key"] == "My_Slug-1"

    @pytest.mark.asyncio
    async def test_invalid_custom_slug(self, controller, bot_context, ready_user):
        await controller.handle_url_message(ready_user, URL_TEXT)
        await controller.edit(ready_user)

        with pytest.raises(InvalidSlugError):
            await controller.handle_custom_slug(ready_user, "not valid!")

        state = bot_context.sessions.get_state(ready_user)
        assert state.awaiting_custom_slug is True
        assert state.suggestion.suggested_slug == "some"

    @pytest.mark.asyncio
    async def test_reject_clears(self, controller, bot_context, ready_user):
        await controller.handle_url_message(ready_user, URL_TEXT)
        responses = await controller.reject(ready_user)
        assert responses[0] == AnswerCallback("Cancelled")
        assert isinstance(bot_context.sessions.get_state(ready_user), Idle)
        bot_context.provider.create_link.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_select_domain(self, controller, bot_context, ready_user):
        bot_context.provider.list_verified_domains.return_value = ["dub.sh", "go.example.com"]
        await controller.handle_url_message(ready_user, URL_TEXT)

        responses = await controller.select_domain(ready_user, "go.example.com")

        assert responses[0] == AnswerCallback("Domain changed to go.example.com")
        assert "go.example.com/some" in responses[1].text
        await controller.confirm(ready_user)
        assert bot_context.provider.create_link.await_args.kwargs["domain"] == "go.example.com"
