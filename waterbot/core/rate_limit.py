"""
Minimum-interval rate limiter owned by an external-tool client.

Each limiter holds its own last-call timestamp; nothing is kept at module
level. ``clock`` and ``sleep`` are injectable so tests can drive time.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Space calls at least ``min_interval`` seconds apart (one caller at a time)."""

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        name: str = "rate_limiter",
    ) -> None:
        self.min_interval = max(0.0, min_interval)
        self._clock = clock
        self._sleep = sleep
        self._name = name
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    async def acquire(self) -> float:
        """Wait until a call is allowed, record it, and return the seconds waited."""
        async with self._lock:
            waited = 0.0
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self.min_interval:
                    waited = self.min_interval - elapsed
                    logger.info("[%s] rate limiting, waiting %.2fs", self._name, waited)
                    await self._sleep(waited)
            self._last_call = self._clock()
            return waited
