"""SQLAlchemy ORM models for the Telepath state database.

This module defines the durable records: per-user preferences, the links
each user has created, and one-time bot configuration flags. Uses
SQLAlchemy 2.0 style with Mapped and mapped_column.
"""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import BigInteger, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now_iso() -> str:
    """Generate current UTC timestamp in ISO8601 format."""
    return datetime.now(UTC).isoformat()


def to_utc_iso(value: str | None) -> str:
    """Normalize an ISO8601 timestamp (e.g. ``...Z``) to UTC isoformat.

    Keeps creation timestamps from different sources sortable as strings.
    Falls back to the current time when the value is missing or unparseable.
    """
    if not value:
        return utc_now_iso()
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return utc_now_iso()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC).isoformat()


class SlugStyle(str, Enum):
    """How the AI should shape suggested slugs."""

    intelligent = "intelligent"
    short = "short"
    descriptive = "descriptive"
    technical = "technical"


# SQLAlchemy Base


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Models


class UserPreferences(Base):
    """Durable per-user settings collected by the setup wizard.

    Exactly one row per user. Created with the defaults below and
    mutated only through explicit updates; removed only by a reset.

    Attributes:
        user_id: Chat platform user identity (primary key).
        default_domain: Preferred short-link domain; None = provider default.
        preferred_slug_style: SlugStyle value guiding AI suggestions.
        auto_confirm: Create links immediately without review.
        show_reasoning: Show the AI's reasoning next to suggestions.
        setup_completed: Whether the setup wizard finished or was skipped.
    """

    __tablename__ = "user_preferences"

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    default_domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    preferred_slug_style: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SlugStyle.intelligent.value
    )
    auto_confirm: Mapped[bool] = mapped_column(nullable=False, default=False)
    show_reasoning: Mapped[bool] = mapped_column(nullable=False, default=True)
    setup_completed: Mapped[bool] = mapped_column(nullable=False, default=False)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    @property
    def slug_style(self) -> SlugStyle:
        """Stored style as an enum, tolerating unknown legacy values."""
        try:
            return SlugStyle(self.preferred_slug_style)
        except ValueError:
            return SlugStyle.intelligent

    def __repr__(self) -> str:
        return (
            f"<UserPreferences(user_id={self.user_id}, "
            f"style={self.preferred_slug_style!r}, setup={self.setup_completed})>"
        )


class UserLink(Base):
    """A short link created through the bot.

    Attributes:
        id: Provider-assigned link id (immutable primary key).
        user_id: Owner's chat identity.
        domain: Short-link domain.
        key: Slug part of the short link.
        url: Destination URL.
        short_link: Fully qualified short link.
        clicks: Click counter; only ever incremented.
    """

    __tablename__ = "user_links"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    short_link: Mapped[str] = mapped_column(String(400), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    clicks: Mapped[int] = mapped_column(default=0, nullable=False)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str | None] = mapped_column(String(50), nullable=True)

    __table_args__ = (
        Index("idx_user_links_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<UserLink(id={self.id!r}, short_link={self.short_link!r})>"


class BotConfiguration(Base):
    """Key/value flags remembering one-time external configuration steps."""

    __tablename__ = "bot_configuration"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    def __repr__(self) -> str:
        return f"<BotConfiguration(key={self.key!r}, value={self.value!r})>"
