"""
Mailgun account authentication fields.

The host runtime collects these fields from the user and hands them to the
cog; the client reads them back through ``auth.get(key)``.
"""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping
from mailgun_cog.logging import logger


class MissingCredentialsError(Exception):
    """Raised when a required Mailgun auth field is missing or empty."""
    pass


@dataclass(frozen=True)
class AuthField:
    """Auth field the host asks the user for."""

    key: str
    type: str
    description: str


#: Auth fields declared in the cog manifest.
AUTH_FIELDS: tuple[AuthField, ...] = (
    AuthField(key="apiKey", type="STRING", description="Mailgun private API key"),
    AuthField(key="domain", type="STRING", description="Mailgun sending domain"),
)


def ensure_valid_auth(auth: Mapping[str, Any]) -> Mapping[str, str]:
    """
    Validate auth fields and return a read-only copy.

    Args:
        auth: Mapping with at least ``apiKey`` and ``domain``

    Returns:
        Immutable mapping of auth values, stripped of surrounding whitespace

    Raises:
        MissingCredentialsError: If a required field is missing or empty
    """
    values: dict[str, str] = {}
    for field in AUTH_FIELDS:
        raw = auth.get(field.key)
        value = str(raw).strip() if raw is not None else ""
        if not value:
            raise MissingCredentialsError(f"Mailgun auth field '{field.key}' is required")
        values[field.key] = value

    domain = values["domain"]
    if "@" in domain or "/" in domain:
        raise MissingCredentialsError(f"Mailgun domain looks malformed: {domain!r}")

    # Pass through extra host-provided fields untouched
    for key, raw in auth.items():
        if key not in values and raw is not None:
            values[key] = str(raw)

    logger.debug(f"Mailgun auth validated for domain {domain}")
    return MappingProxyType(values)
