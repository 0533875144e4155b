"""Assembles services from configuration."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from telepath.cli.config import TelepathConfig
from telepath.db.connection import create_db_engine, create_session_factory
from telepath.handlers.context import BotContext
from telepath.services.access_control import AccessControl
from telepath.services.ai_client import AnthropicCompletionClient
from telepath.services.bot_config_service import BotConfigService
from telepath.services.dub_client import DubClient
from telepath.services.link_service import LinkService
from telepath.services.preferences_service import PreferencesService
from telepath.services.retry import RetryPolicy
from telepath.services.session_manager import SessionManager
from telepath.services.short_id_map import ShortIdMap
from telepath.services.slug_engine import SlugSuggestionEngine

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Everything the running bot owns and must close on shutdown."""

    engine: AsyncEngine
    context: BotContext
    bot_config: BotConfigService

    async def aclose(self) -> None:
        await self.context.provider.aclose()
        await self.engine.dispose()
        logger.info("Runtime closed")


def build_runtime(config: TelepathConfig) -> Runtime:
    """Create the engine, stores and clients described by config.

    Tables are not created here; call ``init_db(runtime.engine)`` inside
    the event loop.
    """
    engine = create_db_engine(config.database.url)
    session_factory = create_session_factory(engine)

    retry = RetryPolicy(
        max_attempts=config.retry.max_attempts,
        initial_delay=config.retry.initial_delay_seconds,
    )
    provider = DubClient(
        api_key=config.dub.api_key,
        base_url=config.dub.base_url,
        retry=retry,
        timeout=config.dub.timeout_seconds,
    )
    completion = (
        AnthropicCompletionClient(
            api_key=config.ai.api_key,
            model=config.ai.model or None,
            max_tokens=config.ai.max_tokens,
        )
        if config.ai.api_key
        else None
    )
    if completion is None:
        logger.warning("No AI API key configured; slugs will be derived from URLs")

    context = BotContext(
        preferences=PreferencesService(session_factory),
        links=LinkService(session_factory),
        provider=provider,
        engine=SlugSuggestionEngine(completion, retry, default_domain=config.dub.default_domain),
        sessions=SessionManager(),
        short_ids=ShortIdMap(),
        access=AccessControl(config.access.allowed_user_ids),
        default_domain=config.dub.default_domain,
    )
    return Runtime(
        engine=engine,
        context=context,
        bot_config=BotConfigService(session_factory),
    )
