"""Static allow-list gate for bot users.

An empty list means the bot is open to everyone.
"""

import logging
from collections.abc import Iterable

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = (
    "🚫 *Access Denied*\n\n"
    "Sorry, you don't have permission to use this bot.\n\n"
    "This bot is currently restricted to authorized users only. If you "
    "believe you should have access, please contact the bot administrator."
)


class AccessControl:
    """Set-membership check over allowed user ids."""

    def __init__(self, allowed_user_ids: Iterable[int] = ()) -> None:
        self._allowed: set[int] = set(allowed_user_ids)
        if not self._allowed:
            logger.warning("No allowed user ids configured; bot is open to all users")
        else:
            logger.info("Loaded %d allowed user(s)", len(self._allowed))

    def is_allowed(self, user_id: int) -> bool:
        if not self._allowed:
            return True
        return user_id in self._allowed

    def add(self, user_id: int) -> None:
        self._allowed.add(user_id)
        logger.info("Added user %s to allowed list", user_id)

    def remove(self, user_id: int) -> bool:
        """Remove a user. Returns False if they weren't on the list."""
        if user_id not in self._allowed:
            return False
        self._allowed.discard(user_id)
        logger.info("Removed user %s from allowed list", user_id)
        return True

    def list_users(self) -> list[int]:
        return sorted(self._allowed)

    @property
    def unauthorized_message(self) -> str:
        return UNAUTHORIZED_MESSAGE
