"""Services for Telepath: storage, external clients and in-memory state."""

from telepath.services.access_control import AccessControl
from telepath.services.ai_client import AnthropicCompletionClient, CompletionClient
from telepath.services.bot_config_service import BotConfigService, ConfigComponent
from telepath.services.dub_client import DubClient, ProviderDomain, ProviderLink
from telepath.services.link_service import LinkPage, LinkService, LinkStats
from telepath.services.preferences_service import PreferencesService
from telepath.services.retry import RetryPolicy, with_retry
from telepath.services.session_manager import (
    AwaitingSuggestionDecision,
    EditingLinkSlug,
    Idle,
    InSetupWizard,
    SessionManager,
    SessionState,
    SetupStep,
)
from telepath.services.short_id_map import ShortIdMap, make_short_id
from telepath.services.slug_engine import LinkSuggestion, PromptContext, SlugSuggestionEngine

__all__ = [
    "AccessControl",
    "AnthropicCompletionClient",
    "CompletionClient",
    "BotConfigService",
    "ConfigComponent",
    "DubClient",
    "ProviderDomain",
    "ProviderLink",
    "LinkPage",
    "LinkService",
    "LinkStats",
    "PreferencesService",
    "RetryPolicy",
    "with_retry",
    "SessionManager",
    "SessionState",
    "SetupStep",
    "Idle",
    "AwaitingSuggestionDecision",
    "InSetupWizard",
    "EditingLinkSlug",
    "ShortIdMap",
    "make_short_id",
    "LinkSuggestion",
    "PromptContext",
    "SlugSuggestionEngine",
]
