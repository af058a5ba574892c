"""
Click Recorder

Counts redirects without delaying them. Each click is an independent
asyncio task with its own database session, since the request session is
closed as soon as the response goes out.

Click counts are advisory: a failed write is logged and dropped, and a
crash between redirect and write loses the click.
"""

import asyncio
import logging
from typing import Set

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.clock import Clock, utc_now
from app.db.repository import ShortLinkRepository

logger = logging.getLogger(__name__)


class ClickRecorder:
    """
    Fire-and-forget click counter.

    One instance per process, shared by every request. Strong references to
    in-flight tasks are kept so they are not garbage collected mid-write.
    """

    def __init__(self, session_maker: async_sessionmaker, clock: Clock = utc_now):
        """
        Args:
            session_maker: Factory for the per-click database sessions
            clock: Source of the updated_at timestamp
        """
        self.session_maker = session_maker
        self.clock = clock
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of click writes still in flight."""
        return len(self._tasks)

    def record_click(self, code: str) -> None:
        """
        Schedule a click increment for `code` and return immediately.

        Must be called from inside a running event loop.
        """
        task = asyncio.get_running_loop().create_task(
            self._increment(code), name=f"record-click:{code}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _increment(self, code: str) -> None:
        try:
            async with self.session_maker() as session:
                repository = ShortLinkRepository(session)
                updated = await repository.increment_clicks(code, self.clock())
                await session.commit()
            if not updated:
                logger.debug(f"Click for {code} dropped: link no longer exists")
        except Exception as e:
            logger.error(
                f"Failed to increment click count for {code}: {str(e)}",
                exc_info=True
            )

    async def drain(self) -> None:
        """Wait for every in-flight click write (shutdown and tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
