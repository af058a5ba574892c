"""
Maintenance Worker

Periodic housekeeping started with the application:
- purge expired short links
- drop expired rate limiter windows

Design:
- One asyncio task per application instance, started/stopped by the lifespan
- Each pass uses its own database session
- A failing pass is logged and the loop keeps going
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.clock import Clock, utc_now
from app.core.rate_limit import FixedWindowRateLimiter
from app.services.expiration import ExpirationSweeper

logger = logging.getLogger(__name__)


@dataclass
class MaintenanceReport:
    """Outcome of one maintenance pass."""
    purged_links: int
    dropped_windows: int


class MaintenanceWorker:
    """Runs expiration sweeps and rate limiter cleanups on an interval."""

    def __init__(
        self,
        session_maker: async_sessionmaker,
        rate_limiters: Dict[str, FixedWindowRateLimiter],
        interval_seconds: float,
        clock: Clock = utc_now,
    ):
        self.session_maker = session_maker
        self.rate_limiters = rate_limiters
        self.interval_seconds = interval_seconds
        self.clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> MaintenanceReport:
        """Run a single pass of every housekeeping job."""
        async with self.session_maker() as session:
            purged = await ExpirationSweeper(session, clock=self.clock).purge_expired()

        dropped = sum(limiter.cleanup() for limiter in self.rate_limiters.values())
        if dropped:
            logger.debug(f"Dropped {dropped} expired rate limit windows")

        return MaintenanceReport(purged_links=purged, dropped_windows=dropped)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Maintenance pass failed: {str(e)}", exc_info=True)

    def start(self) -> None:
        """Start the background loop (no-op if already running)."""
        if self.running:
            logger.warning("Maintenance worker already running")
            return
        self._task = asyncio.get_running_loop().create_task(self._loop(), name="maintenance")
        logger.info(f"Maintenance worker started (interval={self.interval_seconds}s)")

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Maintenance worker stopped")
