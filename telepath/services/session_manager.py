"""Per-user conversation session manager.

Each user has at most one active mode at a time. The mode is a small
immutable-by-convention object; switching modes replaces it, so a pending
suggestion, a wizard step and a slug edit can never coexist.

Example:
    mgr = SessionManager()
    mgr.set_state(42, InSetupWizard(step=SetupStep.welcome))
    mgr.get_state(42)  # InSetupWizard(step=<SetupStep.welcome: 'welcome'>)
    mgr.clear(42)
    mgr.get_state(42)  # Idle()
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Union

from telepath.services.slug_engine import LinkSuggestion

logger = logging.getLogger(__name__)


class SetupStep(str, Enum):
    """Setup wizard steps in presentation order."""

    welcome = "welcome"
    domain_selection = "domain_selection"
    slug_style = "slug_style"
    auto_confirm = "auto_confirm"
    show_reasoning = "show_reasoning"
    completed = "completed"

    def next(self) -> "SetupStep":
        """Following step; Completed is terminal."""
        order = list(SetupStep)
        index = order.index(self)
        return order[min(index + 1, len(order) - 1)]

    def previous(self) -> "SetupStep":
        """Preceding step; Welcome is the first."""
        order = list(SetupStep)
        return order[max(order.index(self) - 1, 0)]


@dataclass
class Idle:
    """No flow in progress."""


@dataclass
class AwaitingSuggestionDecision:
    """A suggestion is shown and the user hasn't confirmed or rejected it.

    Attributes:
        suggestion: The pending suggestion, mutated on custom slug or domain pick.
        awaiting_custom_slug: True after "edit"; the next text is the new slug.
    """

    suggestion: LinkSuggestion
    awaiting_custom_slug: bool = False


@dataclass
class InSetupWizard:
    step: SetupStep = SetupStep.welcome


@dataclass
class EditingLinkSlug:
    link_id: str


SessionState = Union[Idle, AwaitingSuggestionDecision, InSetupWizard, EditingLinkSlug]


@dataclass
class UserSession:
    """Everything held in memory for one user.

    Attributes:
        user_id: Chat user id.
        state: Current single-variant mode.
        available_domains: Verified domains last fetched for this user.
        updated_at: Last state change.
    """

    user_id: int
    state: SessionState = field(default_factory=Idle)
    available_domains: list[str] = field(default_factory=list)
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionManager:
    """Process-wide map of user id to UserSession.

    Entries are created on first state change and removed only by clear().
    Not designed for multi-process deployment.

    Attributes:
        _sessions: Dict of user_id → UserSession.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, UserSession] = {}

    def get(self, user_id: int) -> UserSession | None:
        """Get a session without auto-creating. Returns None if not found."""
        return self._sessions.get(user_id)

    def get_or_create(self, user_id: int) -> UserSession:
        if user_id not in self._sessions:
            self._sessions[user_id] = UserSession(user_id=user_id)
            logger.debug("Created session for user %s", user_id)
        return self._sessions[user_id]

    def get_state(self, user_id: int) -> SessionState:
        """Current state for the user; Idle when no session exists."""
        session = self._sessions.get(user_id)
        return session.state if session is not None else Idle()

    def set_state(self, user_id: int, state: SessionState) -> None:
        """Replace the user's state with a new one."""
        session = self.get_or_create(user_id)
        previous = type(session.state).__name__
        session.state = state
        session.updated_at = datetime.now(timezone.utc)
        logger.debug(
            "Session %s: %s -> %s", user_id, previous, type(state).__name__
        )

    def set_available_domains(self, user_id: int, domains: list[str]) -> None:
        self.get_or_create(user_id).available_domains = list(domains)

    def get_available_domains(self, user_id: int) -> list[str]:
        session = self._sessions.get(user_id)
        return list(session.available_domains) if session else []

    def clear(self, user_id: int) -> None:
        """Drop the user's session entirely. Idempotent."""
        if self._sessions.pop(user_id, None) is not None:
            logger.debug("Cleared session for user %s", user_id)

    def list_sessions(self) -> list[int]:
        return list(self._sessions.keys())
