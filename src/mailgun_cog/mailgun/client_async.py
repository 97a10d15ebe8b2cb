"""
Async Mailgun client.
"""

from __future__ import annotations
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar
import asyncio
import functools

from mailgun_cog.logging import logger
from mailgun_cog.mailgun.client import MailgunClient

T = TypeVar("T")


class AsyncMailgunClient:
    """
    Async facade over :class:`MailgunClient`.

    Requests run in the default thread pool executor so a step can await them
    without blocking the event loop. This is the client handed to steps.
    """

    def __init__(self, client: MailgunClient, rate_limiter=None) -> None:
        """
        Args:
            client: Synchronous client doing the HTTP work
            rate_limiter: Optional AsyncRateLimiter instance for API rate limiting
        """
        self._client = client
        self.rate_limiter = rate_limiter

    @classmethod
    def from_auth(
        cls,
        auth: Mapping[str, Any],
        base_url: Optional[str] = None,
        timeout: float = 30,
        rate_limiter=None,
    ) -> "AsyncMailgunClient":
        """Build the sync client from raw auth fields and wrap it."""
        return cls(MailgunClient(auth, base_url=base_url, timeout=timeout), rate_limiter=rate_limiter)

    @property
    def auth(self) -> Mapping[str, str]:
        """Read-only account auth (``apiKey``, ``domain``)."""
        return self._client.auth

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        if self.rate_limiter:
            await self.rate_limiter.acquire(blocking=True)

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))

    async def get_inbox(self, email: str) -> Optional[Dict[str, Any]]:
        """Fetch stored-message events for ``email`` (see MailgunClient.get_inbox)."""
        logger.debug(f"Fetching inbox for {email}")
        return await self._run(self._client.get_inbox, email)

    async def get_email_by_storage_url(self, storage_url: str) -> Optional[Dict[str, Any]]:
        """Fetch a stored message (see MailgunClient.get_email_by_storage_url)."""
        return await self._run(self._client.get_email_by_storage_url, storage_url)

    def close(self) -> None:
        self._client.close()
