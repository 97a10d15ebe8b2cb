"""
Sliding-window rate limiter for Mailgun API calls.

Mailgun enforces per-key request quotas; a step run only issues two calls,
but a host may run many steps back to back against the same key.
"""

from __future__ import annotations
import time
import asyncio
from collections import deque
from typing import Optional
from mailgun_cog.logging import logger


class AsyncRateLimiter:
    """
    Async sliding-window rate limiter.

    Tracks API calls within a time window and waits when the limit is
    reached. Coroutine-safe through an asyncio lock.
    """

    def __init__(self, max_calls: int, time_window_seconds: float = 60) -> None:
        """
        Args:
            max_calls: Maximum number of calls allowed in the time window
            time_window_seconds: Time window in seconds (default: 60 = 1 minute)
        """
        if max_calls < 1:
            raise ValueError(f"max_calls must be at least 1, got {max_calls}")
        self.max_calls = max_calls
        self.time_window = time_window_seconds
        self.call_times: deque[float] = deque()
        self._lock = asyncio.Lock()

    def _try_record(self, now: float) -> Optional[float]:
        """Record a call if a slot is free; otherwise return seconds until one frees up."""
        while self.call_times and (now - self.call_times[0]) > self.time_window:
            self.call_times.popleft()

        if len(self.call_times) < self.max_calls:
            self.call_times.append(now)
            return None

        return self.time_window - (now - self.call_times[0]) + 0.1

    async def acquire(self, blocking: bool = True, timeout: Optional[float] = None) -> bool:
        """
        Acquire permission to make an API call without blocking the event loop.

        Args:
            blocking: If True, wait until a call slot is available
            timeout: Maximum time to wait in seconds (None = wait indefinitely)

        Returns:
            True if permission granted, False otherwise
        """
        async with self._lock:
            wait_time = self._try_record(time.time())
        if wait_time is None:
            return True

        if not blocking:
            logger.warning(
                f"Mailgun rate limit reached: {len(self.call_times)}/{self.max_calls} calls "
                f"in the last {self.time_window}s"
            )
            return False
        if timeout is not None and wait_time > timeout:
            logger.warning(f"Rate limit wait time ({wait_time:.2f}s) exceeds timeout ({timeout}s)")
            return False

        logger.debug(f"Rate limit reached, waiting {wait_time:.2f}s...")
        await asyncio.sleep(wait_time)
        return await self.acquire(blocking=False)

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None
