"""
Short Code Allocator

Turns "a candidate code or nothing" into a code that is free in the store.

- Caller-supplied codes are validated and checked, never replaced
- Generated codes are retried on collision within a fixed attempt budget

The existence check is a fast path only: two concurrent allocations of the
same code can both pass it. The unique index on short_links.code is the
authority, and RedirectService turns an insert conflict into
CodeConflictError.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AllocationExhaustedError, CodeConflictError, InvalidCodeError
from app.core.setting import settings
from app.core.validators import is_reserved_code, is_valid_custom_code
from app.db.repository import ShortLinkRepository
from app.services.code_generator import generate_code

logger = logging.getLogger(__name__)


class CodeAllocator:
    """Allocates short codes that do not exist in the store yet."""

    def __init__(
        self,
        session: AsyncSession,
        generator: Callable[[int], str] = generate_code,
        code_length: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ):
        """
        Args:
            session: Database session used for existence checks
            generator: Code generator (injectable for tests)
            code_length: Length of generated codes (default: settings.SHORT_CODE_LENGTH)
            max_attempts: Generation budget (default: settings.MAX_GENERATION_ATTEMPTS)
        """
        self.repository = ShortLinkRepository(session)
        self.generator = generator
        self.code_length = code_length or settings.SHORT_CODE_LENGTH
        self.max_attempts = max_attempts or settings.MAX_GENERATION_ATTEMPTS

    async def allocate_unique_code(self, candidate: Optional[str] = None) -> str:
        """
        Return a code that is currently free.

        Args:
            candidate: Caller-requested code, or None to generate one

        Raises:
            InvalidCodeError: If the candidate breaks the format rules
            CodeConflictError: If the candidate is already taken
            AllocationExhaustedError: If every generated code collided
        """
        if candidate is not None:
            return await self._claim_candidate(candidate)
        return await self._generate_unique()

    async def _claim_candidate(self, candidate: str) -> str:
        if not is_valid_custom_code(candidate):
            raise InvalidCodeError(
                candidate,
                reason=(
                    f"Custom code must be {settings.MIN_CUSTOM_CODE_LENGTH}-"
                    f"{settings.MAX_CUSTOM_CODE_LENGTH} characters of [A-Za-z0-9_-]"
                ),
            )
        if is_reserved_code(candidate):
            raise InvalidCodeError(candidate, reason="Custom code is reserved")
        if await self.repository.exists(candidate):
            raise CodeConflictError(candidate)
        return candidate

    async def _generate_unique(self) -> str:
        for attempt in range(1, self.max_attempts + 1):
            code = self.generator(self.code_length)
            if not await self.repository.exists(code):
                if attempt > 1:
                    logger.info(f"Allocated short code after {attempt} attempts")
                return code
            logger.debug(f"Generated code collision on attempt {attempt}")

        logger.error(
            f"Short code allocation exhausted after {self.max_attempts} attempts "
            f"(length={self.code_length})"
        )
        raise AllocationExhaustedError(self.max_attempts)
