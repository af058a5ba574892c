"""
Expiration Policy

A link with expires_at in the past stops resolving immediately, even
before the sweep has removed it. The sweep is a plain bulk delete meant to
run on a schedule (see app.services.maintenance).
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, as_naive_utc, utc_now
from app.core.exceptions import InvalidExpiryError
from app.core.setting import settings
from app.db.repository import ShortLinkRepository

logger = logging.getLogger(__name__)


def is_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    """True iff `expires_at` is set and strictly before `now`."""
    if expires_at is None:
        return False
    return as_naive_utc(expires_at) < as_naive_utc(now)


def expires_at_from_hours(hours: int, now: datetime, max_hours: Optional[int] = None) -> datetime:
    """
    Expiry timestamp for a TTL given in hours.

    Raises:
        InvalidExpiryError: If hours is not positive (expiry must come after
            creation) or exceeds max_hours (default: settings.MAX_TTL_HOURS)
    """
    limit = settings.MAX_TTL_HOURS if max_hours is None else max_hours
    if not 0 < hours <= limit:
        raise InvalidExpiryError(hours, limit)
    return as_naive_utc(now) + timedelta(hours=hours)


class ExpirationSweeper:
    """Bulk removal of expired links."""

    def __init__(self, session: AsyncSession, clock: Clock = utc_now):
        self.session = session
        self.repository = ShortLinkRepository(session)
        self.clock = clock

    async def purge_expired(self, now: Optional[datetime] = None) -> int:
        """
        Delete every link that expired before `now` and commit.

        Returns:
            Number of links removed
        """
        cutoff = as_naive_utc(now) if now is not None else self.clock()
        deleted = await self.repository.delete_expired(cutoff)
        await self.session.commit()
        if deleted:
            logger.info(f"Purged {deleted} expired short links")
        return deleted
