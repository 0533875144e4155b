"""Database connection management for Telepath.

All storage access is asynchronous so a slow query never blocks other
users' conversation turns. SQLite (via aiosqlite) is the default; any
SQLAlchemy async URL works.

Usage:
    from telepath.db.connection import create_db_engine, create_session_factory, init_db

    engine = create_db_engine("sqlite+aiosqlite:///telepath.db")
    await init_db(engine)
    session_factory = create_session_factory(engine)
    async with session_factory() as db:
        ...
"""

import logging
import os
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from telepath.db.models import Base

logger = logging.getLogger(__name__)


def get_database_url() -> str:
    """Get database URL from environment or use default SQLite.

    Precedence:
    1. DATABASE_URL (canonical)
    2. TELEPATH_DB_PATH (converted to sqlite URL)
    3. sqlite+aiosqlite:///<data dir>/telepath.db
    """
    database_url = os.environ.get("DATABASE_URL", "").strip()
    if database_url:
        return to_async_url(database_url)

    db_path = os.environ.get("TELEPATH_DB_PATH", "").strip()
    if db_path:
        if db_path.startswith("sqlite"):
            return to_async_url(db_path)
        return f"sqlite+aiosqlite:///{db_path}"

    from telepath.utils.paths import get_default_db_path
    return f"sqlite+aiosqlite:///{get_default_db_path()}"


def to_async_url(url: str) -> str:
    """Convert sqlite:/// URLs to their aiosqlite form; others unchanged."""
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


def create_db_engine(url: str | None = None, **kwargs: Any) -> AsyncEngine:
    """Create an async engine, applying SQLite pragmas when relevant.

    Args:
        url: Database URL. Defaults to ``get_database_url()``.
        **kwargs: Extra keyword arguments for ``create_async_engine``.

    Returns:
        Configured AsyncEngine.
    """
    url = to_async_url(url or get_database_url())
    engine = create_async_engine(
        url,
        echo=os.environ.get("SQL_ECHO", "").lower() == "true",
        **kwargs,
    )

    if url.startswith("sqlite"):
        @event.listens_for(engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection: Any, connection_record: Any) -> None:
            """Enable WAL so readers don't block the single writer."""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA synchronous=NORMAL;")
            cursor.close()

    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build the session factory the stores open per operation."""
    return async_sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create all tables. Idempotent; safe to call on every startup."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized (%s)", engine.url.render_as_string(hide_password=True))
