from __future__ import annotations
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urljoin, urlparse

import requests

from mailgun_cog.auth import ensure_valid_auth
from mailgun_cog.logging import logger


class MailgunApiError(Exception):
    """Raised when the Mailgun API answers with an error and no error payload."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MailgunClient:
    """
    Read-only Mailgun client for inbox inspection.

    An inbox is the list of ``stored`` events for one recipient; each event
    points at the stored message through ``storage.url``. Rate limiting is
    applied by the async facade that wraps this client.
    """

    #: API base URLs per Mailgun region.
    BASE_URLS = {
        "us": "https://api.mailgun.net/v3",
        "eu": "https://api.eu.mailgun.net/v3",
    }

    def __init__(
        self,
        auth: Mapping[str, Any],
        base_url: Optional[str] = None,
        timeout: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Initialize the client with account credentials.

        Args:
            auth: Mapping with ``apiKey`` and ``domain``
            base_url: API base URL (default: US region)
            timeout: Per-request timeout in seconds (default: 30)
            session: Optional pre-built requests session
        """
        self.auth = ensure_valid_auth(auth)
        self.base_url = (base_url or self.BASE_URLS["us"]).rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = ("api", self.auth["apiKey"])

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        logger.debug(f"GET {url} params={params}")
        return self.session.get(url, params=params, timeout=self.timeout)

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise MailgunApiError(
                f"Mailgun returned a non-JSON response ({resp.status_code})",
                status_code=resp.status_code,
            ) from e

    def get_inbox(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the stored-message events for a recipient.

        Args:
            email: Recipient address on the account's domain

        Returns:
            Events payload with an ``items`` list, or Mailgun's error payload
            (a dict with ``message``) when the API rejects the request.

        Raises:
            MailgunApiError: On HTTP errors without an error payload
            requests.RequestException: On network failures
        """
        url = f"{self.base_url}/{self.auth['domain']}/events"
        resp = self._get(url, params={"event": "stored", "recipient": email})

        if resp.ok:
            body = self._json(resp)
            items = body.get("items") if isinstance(body, dict) else None
            logger.info(f"Fetched {len(items or [])} stored events for {email}")
            return body

        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            logger.warning(f"Mailgun rejected inbox request ({resp.status_code}): {body['message']}")
            return body

        raise MailgunApiError(
            f"Inbox request for {email} failed with status {resp.status_code}",
            status_code=resp.status_code,
        )

    def get_email_by_storage_url(self, storage_url: str) -> Optional[Dict[str, Any]]:
        """
        Fetch a stored message.

        Args:
            storage_url: ``storage.url`` of a stored event; relative URLs are
                resolved against the API base URL.

        Returns:
            Message fields (``subject``, ``from``, ``body-plain``, ``body-html``, ...),
            or None when the message is no longer stored.

        Raises:
            MailgunApiError: On HTTP errors other than 404
        """
        url = storage_url
        if not urlparse(storage_url).scheme:
            url = urljoin(self.base_url + "/", storage_url.lstrip("/"))

        resp = self._get(url)
        if resp.status_code == 404:
            logger.warning(f"Stored message not found: {url}")
            return None
        if not resp.ok:
            raise MailgunApiError(
                f"Message request failed with status {resp.status_code}",
                status_code=resp.status_code,
            )
        return self._json(resp)

    def close(self) -> None:
        self.session.close()
