"""Root-level pytest fixtures for all tests.

Provides:
- In-memory async SQLite session factory (StaticPool)
- Store fixtures (preferences, links, bot configuration flags)
- A mocked link provider and a BotContext wired to them
- Test data generators for provider links
"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from telepath.db.connection import create_db_engine, create_session_factory, init_db
from telepath.handlers.context import BotContext
from telepath.services.access_control import AccessControl
from telepath.services.bot_config_service import BotConfigService
from telepath.services.dub_client import DubClient, ProviderLink
from telepath.services.link_service import LinkService
from telepath.services.preferences_service import PreferencesService
from telepath.services.retry import RetryPolicy
from telepath.services.session_manager import SessionManager
from telepath.services.short_id_map import ShortIdMap
from telepath.services.slug_engine import SlugSuggestionEngine

USER_ID = 1001


class SleepRecorder:
    """Async sleep stand-in that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_provider_link(
    index: int = 1,
    key: str | None = None,
    domain: str = "dub.sh",
    url: str | None = None,
    created_at: str | None = None,
) -> ProviderLink:
    """Build a ProviderLink with a Dub-style id and a distinct timestamp."""
    key = key or f"slug{index}"
    return ProviderLink(
        id=f"link_{index:04d}ABCDEFGHJK",
        domain=domain,
        key=key,
        url=url or f"https://example.com/article/{index}",
        short_link=f"https://{domain}/{key}",
        created_at=created_at or f"2025-01-01T00:{index // 60:02d}:{index % 60:02d}Z",
    )


@pytest.fixture
def make_link():
    """Factory fixture for ProviderLink test data."""
    return make_provider_link


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fast_retry(sleep_recorder: SleepRecorder) -> RetryPolicy:
    """Retry policy that never actually waits."""
    return RetryPolicy(max_attempts=3, initial_delay=1.0, sleep=sleep_recorder)


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """In-memory SQLite shared across connections for one test."""
    engine = create_db_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    try:
        yield create_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def preferences(session_factory) -> PreferencesService:
    return PreferencesService(session_factory)


@pytest.fixture
def links(session_factory) -> LinkService:
    return LinkService(session_factory)


@pytest.fixture
def bot_config(session_factory) -> BotConfigService:
    return BotConfigService(session_factory)


@pytest.fixture
def provider() -> MagicMock:
    """Link provider double: creates links echoing the request."""
    mock = MagicMock(spec=DubClient)

    async def _create_link(url, domain=None, key=None, title=None, description=None):
        domain = domain or "dub.sh"
        return ProviderLink(
            id=f"link_{key}XYZ123456",
            domain=domain,
            key=key,
            url=url,
            short_link=f"https://{domain}/{key}",
            created_at="2025-03-01T12:00:00Z",
        )

    mock.create_link = AsyncMock(side_effect=_create_link)
    mock.delete_link = AsyncMock(return_value=None)
    mock.list_verified_domains = AsyncMock(return_value=[])
    mock.aclose = AsyncMock()
    return mock


@pytest.fixture
def bot_context(preferences, links, provider, fast_retry) -> BotContext:
    """BotContext with AI disabled so slugs come from the URL."""
    return BotContext(
        preferences=preferences,
        links=links,
        provider=provider,
        engine=SlugSuggestionEngine(None, fast_retry),
        sessions=SessionManager(),
        short_ids=ShortIdMap(),
        access=AccessControl(),
    )


@pytest.fixture
async def ready_user(preferences) -> int:
    """A user who has finished setup with default preferences."""
    await preferences.create_default(USER_ID)
    await preferences.mark_setup_completed(USER_ID)
    return USER_ID
