"""
Per-adapter outbound cooldown.

Each source adapter owns one RateLimiter. It remembers when the adapter
last called out and, before the next call, sleeps for whatever is left of
the minimum delay. Concurrent callers on the same adapter are serialized
so the spacing holds under asyncio concurrency. There is no global limiter.
"""
import asyncio
import time
from typing import Awaitable, Callable, Optional

from evidence_engine.core.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float], Awaitable[None]]


class RateLimiter:
    """Last-call timestamp plus minimum delay."""

    def __init__(
        self,
        min_interval: float,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
        name: str = "source",
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self.min_interval = min_interval
        self.name = name
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None
        self._lock: Optional[asyncio.Lock] = None

    @property
    def last_call(self) -> Optional[float]:
        return self._last_call

    async def wait(self) -> float:
        """
        Block until the cooldown since the previous call has elapsed.

        Returns:
            Seconds actually slept (0.0 when no wait was needed)
        """
        if self._lock is None:
            # bound to the running loop on first use
            self._lock = asyncio.Lock()
        async with self._lock:
            waited = 0.0
            if self._last_call is not None:
                remaining = self._last_call + self.min_interval - self._clock()
                if remaining > 0:
                    logger.debug(f"{self.name}: cooling down for {remaining:.2f}s")
                    await self._sleep(remaining)
                    waited = remaining
            self._last_call = self._clock()
            return waited
