"""
Rate Limiting

This module provides the fixed-window rate limiter that gates call volume
per client key (IP address by default).

Design Decisions:
- Fixed window: the counter resets wholesale once the window has elapsed.
  Bursts of up to 2x the budget across a window edge are accepted.
- Rejected calls do not consume budget
- One lock guards the whole table, so check-then-increment is atomic per key
- Limits are written in slowapi's "count/period" notation and parsed
  with the `limits` library (e.g. "10/minute")
- Instances are owned by the application (app.state), never module globals

Future Enhancement:
- Move to Redis-based rate limiting for distributed systems
- Sliding window or token bucket variants for stricter edge behaviour
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from limits import parse

from app.core.exceptions import RateLimitedError
from app.core.setting import Settings, settings as default_settings

logger = logging.getLogger(__name__)

# Endpoint groups that carry their own limiter
RATE_LIMIT_GROUPS = ("shorten", "redirect", "info")


@dataclass
class RateWindowEntry:
    """Request counter for one client key within its current window."""
    count: int
    window_start: float


class FixedWindowRateLimiter:
    """
    Per-key fixed-window request counter.

    Thread-safe: all reads and writes of the table happen under one lock,
    so two concurrent callers can never both slip past the limit.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            max_requests: Calls allowed per key within one window
            window_seconds: Window length in seconds
            clock: Monotonic seconds source (injectable for tests)
        """
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._entries: Dict[str, RateWindowEntry] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_string(
        cls,
        limit: str,
        clock: Callable[[], float] = time.monotonic,
    ) -> "FixedWindowRateLimiter":
        """Build a limiter from "count/period" notation, e.g. "100/minute"."""
        item = parse(limit)
        return cls(item.amount, item.get_expiry(), clock=clock)

    def check(self, key: str) -> None:
        """
        Count a call for `key`.

        Raises:
            RateLimitedError: If the key has used up its budget for this window
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)

            if entry is None or now - entry.window_start > self.window_seconds:
                self._entries[key] = RateWindowEntry(count=1, window_start=now)
                return

            if entry.count >= self.max_requests:
                retry_after = max(0.0, entry.window_start + self.window_seconds - now)
                raise RateLimitedError(key, retry_after=retry_after)

            entry.count += 1

    def cleanup(self) -> int:
        """
        Drop entries whose window has expired.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            expired = [
                key for key, entry in self._entries.items()
                if now - entry.window_start > self.window_seconds
            ]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def get_entry(self, key: str) -> Optional[RateWindowEntry]:
        """Snapshot of the current window for `key`, if any."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return RateWindowEntry(count=entry.count, window_start=entry.window_start)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def build_rate_limiters(
    config: Optional[Settings] = None,
    clock: Callable[[], float] = time.monotonic,
) -> Dict[str, FixedWindowRateLimiter]:
    """
    Create one limiter per endpoint group from settings.

    Called once per process; the result is stored on app.state.
    """
    config = config or default_settings
    limits_by_group = {
        "shorten": config.SHORTEN_RATE_LIMIT,  # URL creation
        "redirect": config.REDIRECT_RATE_LIMIT,  # Redirects
        "info": config.INFO_RATE_LIMIT,  # Metadata, listing and stats queries
    }
    limiters = {
        group: FixedWindowRateLimiter.from_string(limits_by_group[group], clock=clock)
        for group in RATE_LIMIT_GROUPS
    }
    logger.info(
        "Rate limiters configured: "
        + ", ".join(f"{group}={limits_by_group[group]}" for group in RATE_LIMIT_GROUPS)
    )
    return limiters
