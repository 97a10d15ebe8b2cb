"""
Step errors.

Each error carries the printf-style message format and arguments reported
back to the host as an ERROR outcome.
"""

from __future__ import annotations
from typing import Any


class StepError(Exception):
    """Base class for errors that end a step run with an ERROR outcome."""

    message_format: str = "%s"

    def __init__(self, *args: Any) -> None:
        self.message_args: list[Any] = list(args)
        super().__init__(self.render())

    def render(self) -> str:
        if not self.message_args:
            return self.message_format
        return self.message_format % tuple(self.message_args)


class DomainMismatchError(StepError):
    """The inbox address is not on the authenticated account's domain."""

    message_format = "Can't check inbox for %s: email domain doesn't match %s"

    def __init__(self, email: str, auth_domain: str) -> None:
        super().__init__(email, auth_domain)


class InboxUnavailableError(StepError):
    """The inbox request returned nothing."""

    message_format = "Cannot fetch inbox for: %s"

    def __init__(self, email: str) -> None:
        super().__init__(email)


class UpstreamError(StepError):
    """Mailgun answered with an error payload; its message is reported verbatim."""

    def __init__(self, message: str) -> None:
        self.message_format = str(message)
        super().__init__()


class PositionOutOfRangeError(StepError):
    """No message exists at the requested position."""

    message_format = "Cannot fetch email in position: %s"

    def __init__(self, position: int) -> None:
        super().__init__(position)


class MessageUnavailableError(StepError):
    """The stored message could not be fetched."""

    message_format = "Cannot fetch email in position: %s"

    def __init__(self, position: int) -> None:
        super().__init__(position)


__all__ = [
    "StepError",
    "DomainMismatchError",
    "InboxUnavailableError",
    "UpstreamError",
    "PositionOutOfRangeError",
    "MessageUnavailableError",
]
