"""Tests for PreferencesService."""

import pytest

from telepath.db.models import SlugStyle
from telepath.errors import ConflictError, NotFoundError
from telepath.services.preferences_service import describe_slug_style

USER = 7


class TestCreateAndGet:
    """Tests for default creation."""

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, preferences):
        assert await preferences.get(USER) is None

    @pytest.mark.asyncio
    async def test_defaults(self, preferences):
        prefs = await preferences.create_default(USER)
        assert prefs.default_domain is None
        assert prefs.slug_style == SlugStyle.intelligent
        assert prefs.auto_confirm is False
        assert prefs.show_reasoning is True
        assert prefs.setup_completed is False

    @pytest.mark.asyncio
    async def test_create_twice_conflicts(self, preferences):
        await preferences.create_default(USER)
        with pytest.raises(ConflictError):
            await preferences.create_default(USER)

    @pytest.mark.asyncio
    async def test_ensure_is_idempotent(self, preferences):
        first = await preferences.ensure(USER)
        await preferences.update(USER, {"auto_confirm": True})
        second = await preferences.ensure(USER)
        assert first.user_id == second.user_id
        assert second.auto_confirm is True


class TestUpdate:
    """Tests for patch-style updates."""

    @pytest.mark.asyncio
    async def test_update_fields(self, preferences):
        await preferences.create_default(USER)
        prefs = await preferences.update(
            USER,
            {"default_domain": "go.example.com", "preferred_slug_style": SlugStyle.short},
        )
        assert prefs.default_domain == "go.example.com"
        assert prefs.preferred_slug_style == "short"
        assert (await preferences.get(USER)).slug_style == SlugStyle.short

    @pytest.mark.asyncio
    async def test_unknown_field(self, preferences):
        await preferences.create_default(USER)
        with pytest.raises(ValueError):
            await preferences.update(USER, {"colour": "blue"})

    @pytest.mark.asyncio
    async def test_missing_user(self, preferences):
        with pytest.raises(NotFoundError):
            await preferences.update(USER, {"auto_confirm": True})

    @pytest.mark.asyncio
    async def test_setup_completion(self, preferences):
        await preferences.create_default(USER)
        assert await preferences.is_setup_completed(USER) is False
        await preferences.mark_setup_completed(USER)
        assert await preferences.is_setup_completed(USER) is True

    @pytest.mark.asyncio
    async def test_is_setup_completed_without_record(self, preferences):
        assert await preferences.is_setup_completed(USER) is False


class TestReset:
    """Tests for reset."""

    @pytest.mark.asyncio
    async def test_reset_restores_defaults(self, preferences):
        await preferences.create_default(USER)
        await preferences.update(USER, {"auto_confirm": True, "setup_completed": True})

        prefs = await preferences.reset(USER)

        assert prefs.auto_confirm is False
        assert prefs.setup_completed is False

    @pytest.mark.asyncio
    async def test_reset_can_keep_setup(self, preferences):
        await preferences.create_default(USER)
        await preferences.update(USER, {"show_reasoning": False, "setup_completed": True})

        prefs = await preferences.reset(USER, keep_setup_completed=True)

        assert prefs.show_reasoning is True
        assert prefs.setup_completed is True

    @pytest.mark.asyncio
    async def test_reset_without_record_creates_one(self, preferences):
        prefs = await preferences.reset(USER)
        assert prefs.user_id == USER


def test_every_style_has_a_description():
    for style in SlugStyle:
        assert describe_slug_style(style)
