"""YAML configuration loader with env var resolution and Pydantic validation.

Loads config from (priority order):
1. --config <path> CLI flag
2. ./telepath.yaml (working directory)
3. ~/.telepath/config.yaml (user home)
4. Defaults only (everything from the environment)

Environment variables override YAML: TELEPATH_<SECTION>_<KEY>.
${VAR} references in YAML values resolve from environment at load time.
Flat legacy variables (BOT_TOKEN, DUB_API_KEY, ANTHROPIC_API_KEY,
ALLOWED_USER_IDS, DATABASE_URL, ANTHROPIC_MODEL) fill values still empty.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, field_validator
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from telepath.db.connection import get_database_url
from telepath.errors import ConfigError
from telepath.services.ai_client import get_model
from telepath.services.dub_client import DEFAULT_BASE_URL, DEFAULT_DOMAIN

logger = logging.getLogger(__name__)

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

# (section, field) filled from a flat env var when still empty
_LEGACY_ENV_VARS: dict[tuple[str, str], str] = {
    ("telegram", "bot_token"): "BOT_TOKEN",
    ("dub", "api_key"): "DUB_API_KEY",
    ("ai", "api_key"): "ANTHROPIC_API_KEY",
    ("ai", "model"): "ANTHROPIC_MODEL",
    ("access", "allowed_user_ids"): "ALLOWED_USER_IDS",
    ("database", "url"): "DATABASE_URL",
}


def resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} references in a string from environment variables.

    Missing env vars resolve to empty string.
    """
    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, str):
        return resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


class TelegramConfig(BaseModel):
    """Telegram Bot API credentials."""

    bot_token: str = ""


class DubConfig(BaseModel):
    """Dub link-shortening API settings."""

    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    default_domain: str = DEFAULT_DOMAIN
    timeout_seconds: float = 15.0


class AIConfig(BaseModel):
    """Anthropic settings for slug suggestions."""

    api_key: str = ""
    model: str = ""
    max_tokens: int = 300


class RetryConfig(BaseModel):
    """Shared retry policy for outbound calls."""

    max_attempts: int = 3
    initial_delay_seconds: float = 1.0

    @field_validator("max_attempts")
    @classmethod
    def at_least_one_attempt(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_attempts must be at least 1")
        return value


class AccessConfig(BaseModel):
    """Allow-list of Telegram user ids. Empty allows everyone."""

    allowed_user_ids: list[int] = []

    @field_validator("allowed_user_ids", mode="before")
    @classmethod
    def parse_user_ids(cls, value: Any) -> list[int]:
        """Accept a list or a comma-separated string; drop non-integers."""
        if value is None or value == "":
            return []
        if isinstance(value, (int, str)):
            value = str(value).split(",")
        ids: list[int] = []
        for item in value:
            text = str(item).strip()
            if not text:
                continue
            try:
                ids.append(int(text))
            except ValueError:
                logger.warning("Ignoring invalid user id in allow-list: %r", text)
        return ids


class DatabaseConfig(BaseModel):
    url: str = ""


class LoggingConfig(BaseModel):
    level: str = "info"
    file: str | None = None


class TelepathConfig(BaseModel):
    """Top-level configuration for the Telepath bot."""

    telegram: TelegramConfig = TelegramConfig()
    dub: DubConfig = DubConfig()
    ai: AIConfig = AIConfig()
    retry: RetryConfig = RetryConfig()
    access: AccessConfig = AccessConfig()
    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()


def _find_config_file() -> Path | None:
    """Search for config file in standard locations."""
    candidates = [
        Path.cwd() / "telepath.yaml",
        Path.cwd() / "telepath.yml",
        Path.home() / ".telepath" / "config.yaml",
        Path.home() / ".telepath" / "config.yml",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply TELEPATH_<SECTION>_<KEY> env var overrides to config data.

    Section names are matched by longest prefix. Values are coerced to
    int or bool when they look like one.
    """
    prefix = "TELEPATH_"
    known_sections = sorted(
        TelepathConfig.model_fields.keys(), key=len, reverse=True
    )
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        suffix = key[len(prefix):].lower()
        matched_section = None
        matched_field = None
        for section in known_sections:
            section_prefix = section + "_"
            if suffix.startswith(section_prefix):
                matched_section = section
                matched_field = suffix[len(section_prefix):]
                break
        if matched_section is None or not matched_field:
            continue
        if not isinstance(data.get(matched_section), dict):
            data[matched_section] = {}
        try:
            data[matched_section][matched_field] = int(value)
        except ValueError:
            if value.lower() in ("true", "false"):
                data[matched_section][matched_field] = value.lower() == "true"
            else:
                data[matched_section][matched_field] = value
    return data


def _apply_legacy_env(data: dict[str, Any]) -> dict[str, Any]:
    for (section, field), env_name in _LEGACY_ENV_VARS.items():
        value = os.environ.get(env_name)
        if not value:
            continue
        if not isinstance(data.get(section), dict):
            data[section] = {}
        if not data[section].get(field):
            data[section][field] = value
    return data


def load_config(config_path: str | None = None) -> TelepathConfig:
    """Load Telepath configuration from YAML file and environment.

    Args:
        config_path: Explicit path to config file. If None, searches
            standard locations (cwd, then ~/.telepath/).

    Returns:
        Parsed and validated TelepathConfig. Defaults fill anything unset.

    Raises:
        FileNotFoundError: config_path was given but doesn't exist.
    """
    raw_data: dict[str, Any] = {}
    if config_path:
        path: Path | None = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        path = _find_config_file()

    if path is not None:
        logger.info("Loading config from %s", path)
        with open(path) as f:
            raw_data = yaml.safe_load(f) or {}
    else:
        logger.info("No config file found; using environment and defaults")

    data = _resolve_env_vars_recursive(raw_data)
    data = _apply_env_overrides(data)
    data = _apply_legacy_env(data)

    config = TelepathConfig(**data)
    if not config.ai.model:
        config.ai.model = get_model()
    if not config.database.url:
        config.database.url = get_database_url()
    return config


def validate_required(config: TelepathConfig) -> None:
    """Ensure every secret needed to run the bot is present.

    The AI key is optional: without it slugs are derived from the URL.

    Raises:
        ConfigError: Listing all missing settings.
    """
    missing = []
    if not config.telegram.bot_token:
        missing.append("telegram.bot_token (BOT_TOKEN)")
    if not config.dub.api_key:
        missing.append("dub.api_key (DUB_API_KEY)")
    if missing:
        raise ConfigError(f"Missing required configuration: {', '.join(missing)}")


def mask_secret(value: str) -> str:
    """Show only the last four characters of a secret."""
    if not value:
        return "(not set)"
    if len(value) <= 4:
        return "****"
    return "****" + value[-4:]


def mask_database_url(url: str) -> str:
    """Database URL with any password hidden."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "(invalid URL)"
