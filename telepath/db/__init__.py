"""Database module for Telepath preferences, links and configuration flags."""

from telepath.db.connection import (
    create_db_engine,
    create_session_factory,
    get_database_url,
    init_db,
)
from telepath.db.models import (
    Base,
    BotConfiguration,
    SlugStyle,
    UserLink,
    UserPreferences,
)

__all__ = [
    # Models
    "Base",
    "UserPreferences",
    "UserLink",
    "BotConfiguration",
    # Enums
    "SlugStyle",
    # Connection
    "create_db_engine",
    "create_session_factory",
    "get_database_url",
    "init_db",
]
