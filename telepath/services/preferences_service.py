"""Service for per-user preference records.

One UserPreferences row per user, created with defaults and then updated
patch-style by the setup wizard and the settings menu.
"""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from telepath.db.models import SlugStyle, UserPreferences, utc_now_iso
from telepath.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

# Fields that can be updated via update()
_MUTABLE_FIELDS = {
    "default_domain",
    "preferred_slug_style",
    "auto_confirm",
    "show_reasoning",
    "setup_completed",
}

SLUG_STYLE_DESCRIPTIONS: dict[SlugStyle, str] = {
    SlugStyle.intelligent: "AI analyzes content for smart, relevant slugs",
    SlugStyle.short: "Prioritizes brevity - 3-6 characters when possible",
    SlugStyle.descriptive: "Longer, more descriptive slugs that explain the content",
    SlugStyle.technical: "Technical/developer-friendly slugs with conventions",
}


def describe_slug_style(style: SlugStyle) -> str:
    """Return the one-line description shown in style pickers."""
    return SLUG_STYLE_DESCRIPTIONS[style]


class PreferencesService:
    """CRUD service for UserPreferences rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get(self, user_id: int) -> UserPreferences | None:
        """Return the user's preferences, or None if never created."""
        async with self._session_factory() as db:
            return await db.get(UserPreferences, user_id)

    async def create_default(self, user_id: int) -> UserPreferences:
        """Create the default record for a new user.

        Raises:
            ConflictError: If a record already exists for user_id.
        """
        async with self._session_factory() as db:
            if await db.get(UserPreferences, user_id) is not None:
                raise ConflictError(f"Preferences for user {user_id} already exist")
            prefs = UserPreferences(
                user_id=user_id,
                default_domain=None,
                preferred_slug_style=SlugStyle.intelligent.value,
                auto_confirm=False,
                show_reasoning=True,
                setup_completed=False,
            )
            db.add(prefs)
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                raise ConflictError(
                    f"Preferences for user {user_id} already exist"
                ) from e
            logger.info("Created default preferences for user %s", user_id)
            return prefs

    async def ensure(self, user_id: int) -> UserPreferences:
        """Return existing preferences, creating the defaults if absent."""
        prefs = await self.get(user_id)
        if prefs is not None:
            return prefs
        try:
            return await self.create_default(user_id)
        except ConflictError:
            # Created concurrently between the read and the insert
            existing = await self.get(user_id)
            if existing is None:
                raise
            return existing

    async def update(self, user_id: int, patch: dict[str, Any]) -> UserPreferences:
        """Apply patch-style updates to a user's preferences.

        Args:
            user_id: Owner of the record.
            patch: Field names to new values. SlugStyle values are stored
                by their string value.

        Returns:
            The updated record.

        Raises:
            ValueError: If patch contains unknown field names.
            NotFoundError: If the user has no preferences record.
        """
        unknown = set(patch.keys()) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown preference fields: {unknown}")

        async with self._session_factory() as db:
            prefs = await db.get(UserPreferences, user_id)
            if prefs is None:
                raise NotFoundError("UserPreferences", str(user_id))
            for key, value in patch.items():
                if isinstance(value, SlugStyle):
                    value = value.value
                setattr(prefs, key, value)
            prefs.updated_at = utc_now_iso()
            await db.commit()
            return prefs

    async def is_setup_completed(self, user_id: int) -> bool:
        prefs = await self.get(user_id)
        return bool(prefs and prefs.setup_completed)

    async def mark_setup_completed(self, user_id: int) -> UserPreferences:
        """Mark the setup wizard as finished."""
        return await self.update(user_id, {"setup_completed": True})

    async def reset(self, user_id: int, keep_setup_completed: bool = False) -> UserPreferences:
        """Delete and recreate the user's record with defaults.

        Args:
            user_id: Owner of the record.
            keep_setup_completed: Leave the recreated record marked as set up,
                so a reset from the settings menu doesn't restart the wizard.
        """
        async with self._session_factory() as db:
            prefs = await db.get(UserPreferences, user_id)
            if prefs is not None:
                await db.delete(prefs)
                await db.commit()
        logger.info("Reset preferences for user %s", user_id)

        prefs = await self.create_default(user_id)
        if keep_setup_completed:
            prefs = await self.mark_setup_completed(user_id)
        return prefs
