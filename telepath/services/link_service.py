"""Service for the per-user collection of created short links.

Links are stored locally when the provider confirms creation and are
browsed most-recent first, five per page.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from telepath.db.models import UserLink, to_utc_iso, utc_now_iso
from telepath.services.dub_client import ProviderLink

logger = logging.getLogger(__name__)

PAGE_SIZE = 5

# Fields that can be changed via update_link(); clicks only grow via increment
_MUTABLE_FIELDS = {"domain", "key", "url", "short_link", "title", "description"}


@dataclass
class LinkPage:
    """One page of a user's links.

    Attributes:
        links: Links on this page, most recent first.
        total_pages: ceil(total_links / page_size).
        total_links: Number of links the user owns.
        current_page: The (clamped) page number returned.
    """

    links: list[UserLink]
    total_pages: int
    total_links: int
    current_page: int


@dataclass
class LinkStats:
    """Aggregate numbers for a user's links."""

    total_links: int
    total_clicks: int
    most_clicked_link: UserLink | None = None
    recent_links: list[UserLink] = field(default_factory=list)


class LinkService:
    """CRUD, pagination and search over UserLink rows."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def save_link(self, user_id: int, link: ProviderLink) -> UserLink:
        """Persist a link the provider just created.

        The provider's creation timestamp, when present, becomes the
        local created_at so ordering follows the provider.
        """
        record = UserLink(
            id=link.id,
            user_id=user_id,
            domain=link.domain,
            key=link.key,
            url=link.url,
            short_link=link.short_link,
            title=link.title,
            description=link.description,
            clicks=0,
            created_at=to_utc_iso(link.created_at),
        )
        async with self._session_factory() as db:
            db.add(record)
            await db.commit()
        logger.info("Saved link %s for user %s", link.id, user_id)
        return record

    async def get_link(self, user_id: int, link_id: str) -> UserLink | None:
        """Return the link if it exists and belongs to user_id."""
        async with self._session_factory() as db:
            result = await db.execute(
                select(UserLink).where(
                    UserLink.id == link_id, UserLink.user_id == user_id
                )
            )
            return result.scalar_one_or_none()

    async def update_link(
        self, user_id: int, link_id: str, patch: dict[str, Any]
    ) -> UserLink | None:
        """Apply patch-style updates to one of the user's links.

        Returns:
            The updated link, or None if it doesn't exist for this user.

        Raises:
            ValueError: If patch contains unknown field names.
        """
        unknown = set(patch.keys()) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown link fields: {unknown}")

        async with self._session_factory() as db:
            result = await db.execute(
                select(UserLink).where(
                    UserLink.id == link_id, UserLink.user_id == user_id
                )
            )
            link = result.scalar_one_or_none()
            if link is None:
                return None
            for key, value in patch.items():
                setattr(link, key, value)
            link.updated_at = utc_now_iso()
            await db.commit()
            return link

    async def delete_link(self, user_id: int, link_id: str) -> bool:
        """Delete one of the user's links. Returns False if nothing matched."""
        async with self._session_factory() as db:
            result = await db.execute(
                delete(UserLink).where(
                    UserLink.id == link_id, UserLink.user_id == user_id
                )
            )
            await db.commit()
            return result.rowcount > 0

    async def list_links(
        self, user_id: int, page: int = 1, page_size: int = PAGE_SIZE
    ) -> LinkPage:
        """Return one page of links, most recent first.

        Page numbers are clamped to [1, total_pages]; an empty collection
        yields page 1 of 0.
        """
        async with self._session_factory() as db:
            total_links = await db.scalar(
                select(func.count()).select_from(UserLink).where(UserLink.user_id == user_id)
            ) or 0
            total_pages = math.ceil(total_links / page_size)
            current_page = max(1, min(page, total_pages)) if total_pages else 1

            result = await db.execute(
                select(UserLink)
                .where(UserLink.user_id == user_id)
                .order_by(UserLink.created_at.desc())
                .offset((current_page - 1) * page_size)
                .limit(page_size)
            )
            links = list(result.scalars().all())

        return LinkPage(
            links=links,
            total_pages=total_pages,
            total_links=total_links,
            current_page=current_page,
        )

    async def increment_clicks(self, user_id: int, link_id: str) -> None:
        """Add one click to the link's counter. No-op if the link is absent."""
        async with self._session_factory() as db:
            await db.execute(
                update(UserLink)
                .where(UserLink.id == link_id, UserLink.user_id == user_id)
                .values(clicks=UserLink.clicks + 1)
            )
            await db.commit()

    async def search_links(self, user_id: int, query: str) -> list[UserLink]:
        """Substring search over url, slug, title and description."""
        async with self._session_factory() as db:
            result = await db.execute(
                select(UserLink)
                .where(
                    UserLink.user_id == user_id,
                    or_(
                        UserLink.url.contains(query, autoescape=True),
                        UserLink.key.contains(query, autoescape=True),
                        UserLink.title.contains(query, autoescape=True),
                        UserLink.description.contains(query, autoescape=True),
                    ),
                )
                .order_by(UserLink.created_at.desc())
            )
            return list(result.scalars().all())

    async def get_stats(self, user_id: int) -> LinkStats:
        """Totals, the most clicked link and the three most recent links."""
        async with self._session_factory() as db:
            owned = UserLink.user_id == user_id
            total_links = await db.scalar(
                select(func.count()).select_from(UserLink).where(owned)
            ) or 0
            total_clicks = await db.scalar(
                select(func.coalesce(func.sum(UserLink.clicks), 0)).where(owned)
            ) or 0
            most_clicked = (
                await db.execute(
                    select(UserLink).where(owned).order_by(UserLink.clicks.desc()).limit(1)
                )
            ).scalar_one_or_none()
            recent = (
                await db.execute(
                    select(UserLink).where(owned).order_by(UserLink.created_at.desc()).limit(3)
                )
            ).scalars().all()

        return LinkStats(
            total_links=total_links,
            total_clicks=total_clicks,
            most_clicked_link=most_clicked,
            recent_links=list(recent),
        )
