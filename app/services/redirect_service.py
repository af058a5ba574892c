"""
Redirect Service

The facade the API layer calls for everything a short link does:
- create: validate, allocate a code, persist
- resolve: look up, enforce expiry, count the click (without waiting), return the target
- get_info: same lookup as resolve, but a metadata read (no click)
- delete: ownership-checked removal

Design Decisions:
- Expired links are reported exactly like missing ones (NotFound), so the
  API never reveals that an expired code once existed
- Allocation is synchronous end-to-end: the code is committed before it is returned
- Click accounting is handed to ClickRecorder and never awaited
"""

import logging
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, utc_now
from app.core.exceptions import (
    CodeConflictError,
    DatabaseError,
    ForbiddenError,
    InvalidURLError,
    ShortCodeNotFoundError,
)
from app.core.setting import settings
from app.core.validators import clean_title, is_valid_url, sanitize_short_code
from app.db.models import ShortLink, new_link_id
from app.db.repository import LinkStats, ShortLinkRepository
from app.services.click_recorder import ClickRecorder
from app.services.code_allocator import CodeAllocator
from app.services.code_generator import generate_code
from app.services.expiration import expires_at_from_hours, is_expired

logger = logging.getLogger(__name__)


class RedirectService:
    """
    Core business logic for short links.

    Created per request around the request's session; the click recorder
    is shared across requests.
    """

    def __init__(
        self,
        session: AsyncSession,
        click_recorder: ClickRecorder,
        clock: Clock = utc_now,
        generator: Callable[[int], str] = generate_code,
    ):
        """
        Args:
            session: Database session
            click_recorder: Process-wide click recorder
            clock: Source of "now" (injectable for tests)
            generator: Short code generator (injectable for tests)
        """
        self.session = session
        self.repository = ShortLinkRepository(session)
        self.allocator = CodeAllocator(session, generator=generator)
        self.click_recorder = click_recorder
        self.clock = clock

    async def create(
        self,
        target_url: str,
        candidate_code: Optional[str] = None,
        owner_id: Optional[str] = None,
        title: Optional[str] = None,
        ttl_hours: Optional[int] = None,
    ) -> ShortLink:
        """
        Create a new short link.

        Args:
            target_url: The long URL to shorten
            candidate_code: Requested code, or None to generate one
            owner_id: Creating user, or None for an anonymous link
            title: Optional display title
            ttl_hours: Lifetime in hours, or None for a permanent link

        Returns:
            The stored ShortLink

        Raises:
            InvalidURLError: If the URL scheme/format/length is not acceptable
            InvalidCodeError: If the candidate code breaks the format rules or is reserved
            InvalidExpiryError: If ttl_hours is not between 1 and settings.MAX_TTL_HOURS
            CodeConflictError: If the candidate code is already taken
            AllocationExhaustedError: If no free code could be generated
            DatabaseError: If the insert fails for any other reason
            ValueError: If the title is too long
                (the API schema rejects it before it gets here)
        """
        if not is_valid_url(target_url):
            raise InvalidURLError(
                target_url,
                reason=(
                    "Invalid URL format. URL must be an absolute http:// or https:// URL "
                    f"of at most {settings.MAX_URL_LENGTH} characters"
                ),
            )

        title = clean_title(title)

        now = self.clock()
        expires_at = expires_at_from_hours(ttl_hours, now) if ttl_hours is not None else None

        code = await self.allocator.allocate_unique_code(candidate_code)

        link = ShortLink(
            id=new_link_id(),
            code=code,
            target_url=target_url,
            title=title,
            owner_id=owner_id,
            click_count=0,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )

        try:
            await self.repository.add(link)
            await self.session.commit()
        except IntegrityError as e:
            # Lost the race between the existence check and the insert
            await self.session.rollback()
            logger.warning(f"Short code '{code}' taken concurrently")
            raise CodeConflictError(code) from e
        except Exception as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to create short link: {str(e)}", original_error=e) from e

        logger.info(f"Created short link {code} (owner={owner_id or 'anonymous'})")
        return link

    async def _get_live_link(self, code: str) -> ShortLink:
        """Look up a non-expired link or raise ShortCodeNotFoundError."""
        sanitized = sanitize_short_code(code)
        if sanitized is None:
            raise ShortCodeNotFoundError(code)

        link = await self.repository.find_by_code(sanitized)
        if link is None:
            raise ShortCodeNotFoundError(code)

        if is_expired(link.expires_at, self.clock()):
            logger.info(f"Attempted to access expired short link {sanitized}")
            raise ShortCodeNotFoundError(code)

        return link

    async def resolve(self, code: str) -> str:
        """
        Get the target URL for redirection and count the click.

        The click is recorded asynchronously; this returns without waiting for it.

        Raises:
            ShortCodeNotFoundError: If the code is unknown, malformed or expired
        """
        link = await self._get_live_link(code)
        self.click_recorder.record_click(link.code)
        return link.target_url

    async def get_info(self, code: str) -> ShortLink:
        """
        Get the full record for a live link without counting a click.

        Raises:
            ShortCodeNotFoundError: If the code is unknown, malformed or expired
        """
        return await self._get_live_link(code)

    async def delete(self, code: str, requester_id: Optional[str] = None) -> None:
        """
        Delete a link.

        Owned links can only be deleted by their owner; anonymous links can be
        deleted by any requester.

        Raises:
            ShortCodeNotFoundError: If the code is unknown, malformed or expired
            ForbiddenError: If the link is owned by someone other than requester_id
        """
        link = await self._get_live_link(code)

        if link.owner_id is not None and link.owner_id != requester_id:
            logger.warning(
                f"Delete of {link.code} refused for requester {requester_id or 'anonymous'}"
            )
            raise ForbiddenError(link.code)

        await self.repository.delete(link.id)
        await self.session.commit()
        logger.info(f"Deleted short link {link.code}")

    async def list_owner_links(self, owner_id: str) -> List[ShortLink]:
        """All links created by `owner_id`, newest first (expired ones included until purged)."""
        return await self.repository.find_by_owner(owner_id)

    async def get_stats(self) -> LinkStats:
        """Aggregate counters across all stored links."""
        return await self.repository.get_stats()
