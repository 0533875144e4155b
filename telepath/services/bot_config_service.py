"""Idempotent flags for one-time bot configuration steps.

Telegram profile setup (command menu, name, descriptions) only needs to
run once per bot; each step records a flag here so restarts skip it.
"""

import logging
from enum import Enum

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from telepath.db.models import BotConfiguration, utc_now_iso

logger = logging.getLogger(__name__)


class ConfigComponent(str, Enum):
    """Configuration steps tracked by flag."""

    commands_set = "commands_set"
    name_set = "name_set"
    description_set = "description_set"
    short_description_set = "short_description_set"
    menu_button_set = "menu_button_set"
    full_configuration_completed = "full_configuration_completed"


class BotConfigService:
    """Read and write configuration flags in the bot_configuration table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def is_configured(self, component: ConfigComponent) -> bool:
        async with self._session_factory() as db:
            row = await db.get(BotConfiguration, component.value)
            return row is not None and row.value == "true"

    async def mark_configured(self, component: ConfigComponent) -> None:
        """Set the component's flag (upsert)."""
        async with self._session_factory() as db:
            row = await db.get(BotConfiguration, component.value)
            if row is None:
                db.add(BotConfiguration(key=component.value, value="true"))
            else:
                row.value = "true"
                row.updated_at = utc_now_iso()
            await db.commit()
        logger.info("Bot configuration step '%s' marked completed", component.value)

    async def is_configuration_completed(self) -> bool:
        return await self.is_configured(ConfigComponent.full_configuration_completed)

    async def mark_configuration_completed(self) -> None:
        await self.mark_configured(ConfigComponent.full_configuration_completed)

    async def status(self) -> dict[str, bool]:
        """Return every tracked flag with its current state."""
        async with self._session_factory() as db:
            result = await db.execute(select(BotConfiguration))
            stored = {row.key: row.value == "true" for row in result.scalars()}
        return {c.value: stored.get(c.value, False) for c in ConfigComponent}

    async def reset(self) -> None:
        """Clear every tracked flag so the next run reconfigures the bot."""
        async with self._session_factory() as db:
            await db.execute(
                delete(BotConfiguration).where(
                    BotConfiguration.key.in_([c.value for c in ConfigComponent])
                )
            )
            await db.commit()
        logger.info("Bot configuration reset")
