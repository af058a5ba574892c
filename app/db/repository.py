"""
ShortLink Repository

Store operations for short links. Services never build SQL themselves;
they go through this class so the persistence details stay in one place.

All methods work inside the caller's session and leave commit to the caller.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import ShortLink


@dataclass(frozen=True)
class LinkStats:
    """Aggregate counters across all stored links."""
    total_urls: int
    total_clicks: int
    avg_clicks: float


class ShortLinkRepository:
    """Point lookups, inserts, counter updates and bulk deletes for ShortLink rows."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_code(self, code: str) -> Optional[ShortLink]:
        """
        Look up a link by its short code.

        populate_existing makes repeated reads in one session pick up counter
        updates written by other sessions.
        """
        statement = (
            select(ShortLink)
            .where(ShortLink.code == code)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def exists(self, code: str) -> bool:
        statement = select(ShortLink.id).where(ShortLink.code == code).limit(1)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none() is not None

    async def add(self, link: ShortLink) -> ShortLink:
        """
        Insert a new link and flush it.

        Raises:
            sqlalchemy.exc.IntegrityError: If the code is already taken
        """
        self.session.add(link)
        await self.session.flush()
        return link

    async def increment_clicks(self, code: str, now: datetime) -> bool:
        """
        Atomically add one click and touch updated_at.

        Uses a single UPDATE rather than read-modify-write, so concurrent
        increments never lose counts.

        Returns:
            True if a row was updated
        """
        statement = (
            update(ShortLink)
            .where(ShortLink.code == code)
            .values(click_count=ShortLink.click_count + 1, updated_at=now)
        )
        result = await self.session.execute(statement)
        return result.rowcount > 0

    async def delete(self, link_id: str) -> bool:
        statement = delete(ShortLink).where(ShortLink.id == link_id)
        result = await self.session.execute(statement)
        return result.rowcount > 0

    async def delete_expired(self, now: datetime) -> int:
        """Delete every link whose expires_at is before `now`; returns rows removed."""
        statement = delete(ShortLink).where(
            ShortLink.expires_at.is_not(None),
            ShortLink.expires_at < now,
        )
        result = await self.session.execute(statement)
        return result.rowcount or 0

    async def find_by_owner(self, owner_id: str) -> List[ShortLink]:
        statement = (
            select(ShortLink)
            .where(ShortLink.owner_id == owner_id)
            .order_by(ShortLink.created_at.desc())
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def get_stats(self) -> LinkStats:
        statement = select(
            func.count(ShortLink.id),
            func.coalesce(func.sum(ShortLink.click_count), 0),
            func.coalesce(func.avg(ShortLink.click_count), 0),
        )
        result = await self.session.execute(statement)
        total_urls, total_clicks, avg_clicks = result.one()
        return LinkStats(
            total_urls=int(total_urls),
            total_clicks=int(total_clicks),
            avg_clicks=float(avg_clicks),
        )
