"""Collaborators shared by every conversation controller."""

from dataclasses import dataclass, field

from telepath.services.access_control import AccessControl
from telepath.services.dub_client import DEFAULT_DOMAIN, DubClient
from telepath.services.link_service import LinkService
from telepath.services.preferences_service import PreferencesService
from telepath.services.session_manager import SessionManager
from telepath.services.short_id_map import ShortIdMap
from telepath.services.slug_engine import SlugSuggestionEngine


@dataclass
class BotContext:
    """Process-wide services and state, built once at startup.

    Attributes:
        preferences: Preference record store.
        links: Link record store.
        provider: Link-shortening gateway.
        engine: Slug suggestion engine.
        sessions: Per-user session state.
        short_ids: Short display id map for link buttons.
        access: Allow-list gate.
        default_domain: Domain used when a user has none configured.
    """

    preferences: PreferencesService
    links: LinkService
    provider: DubClient
    engine: SlugSuggestionEngine
    sessions: SessionManager = field(default_factory=SessionManager)
    short_ids: ShortIdMap = field(default_factory=ShortIdMap)
    access: AccessControl = field(default_factory=AccessControl)
    default_domain: str = DEFAULT_DOMAIN
