"""Tests for SessionManager and SetupStep ordering."""

from telepath.services.session_manager import (
    AwaitingSuggestionDecision,
    EditingLinkSlug,
    Idle,
    InSetupWizard,
    SessionManager,
    SetupStep,
)
from telepath.services.slug_engine import LinkSuggestion


def _suggestion() -> LinkSuggestion:
    return LinkSuggestion(
        url="https://example.com", suggested_slug="example", domain="dub.sh", reasoning="r"
    )


class TestSetupStep:
    def test_next_walks_in_order(self):
        step = SetupStep.welcome
        seen = [step]
        while step != SetupStep.completed:
            step = step.next()
            seen.append(step)
        assert seen == list(SetupStep)

    def test_boundaries(self):
        assert SetupStep.completed.next() == SetupStep.completed
        assert SetupStep.welcome.previous() == SetupStep.welcome
        assert SetupStep.slug_style.previous() == SetupStep.domain_selection


class TestSessionManager:
    """Tests for per-user session state."""

    def test_unknown_user_is_idle(self):
        mgr = SessionManager()
        assert isinstance(mgr.get_state(1), Idle)
        assert mgr.get(1) is None

    def test_states_replace_each_other(self):
        """A user holds exactly one mode at a time."""
        mgr = SessionManager()
        mgr.set_state(1, AwaitingSuggestionDecision(_suggestion()))
        mgr.set_state(1, InSetupWizard(SetupStep.slug_style))
        state = mgr.get_state(1)
        assert isinstance(state, InSetupWizard)
        assert state.step == SetupStep.slug_style

        mgr.set_state(1, EditingLinkSlug("link_1"))
        assert mgr.get_state(1) == EditingLinkSlug("link_1")

    def test_users_are_isolated(self):
        mgr = SessionManager()
        mgr.set_state(1, EditingLinkSlug("link_1"))
        assert isinstance(mgr.get_state(2), Idle)

    def test_clear_is_idempotent(self):
        mgr = SessionManager()
        mgr.set_state(1, InSetupWizard())
        mgr.clear(1)
        mgr.clear(1)
        assert isinstance(mgr.get_state(1), Idle)
        assert mgr.list_sessions() == []

    def test_available_domains(self):
        mgr = SessionManager()
        assert mgr.get_available_domains(1) == []
        domains = ["a.test", "b.test"]
        mgr.set_available_domains(1, domains)
        domains.append("c.test")
        assert mgr.get_available_domains(1) == ["a.test", "b.test"]

    def test_set_state_updates_timestamp(self):
        mgr = SessionManager()
        session = mgr.get_or_create(1)
        before = session.updated_at
        mgr.set_state(1, InSetupWizard())
        assert mgr.get(1).updated_at >= before
