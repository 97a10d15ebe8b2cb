"""
Input validation helpers for step data.
"""

from __future__ import annotations
import math
import re
from typing import Any
from mailgun_cog.logging import logger

#: Leading integer of a value's string form, the way JavaScript ``parseInt`` reads it.
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def email_domain(email: Any) -> str:
    """
    Return the part of an email address after the first ``@``.

    Args:
        email: Email address (anything else yields an empty domain)

    Returns:
        Domain string, or "" when there is no ``@``
    """
    if not isinstance(email, str):
        return ""
    parts = email.split("@")
    return parts[1] if len(parts) > 1 else ""


def validate_email_address(email: Any) -> bool:
    """
    Validate that a value looks like ``local@domain``.

    Args:
        email: Candidate email address

    Returns:
        True if valid, False otherwise
    """
    if not isinstance(email, str):
        logger.warning(f"Email address is not a string: {type(email)}")
        return False

    local, sep, domain = email.strip().partition("@")
    if not sep or not local or not domain or "@" in domain:
        logger.warning(f"Invalid email address: {email!r}")
        return False

    if "." not in domain:
        logger.warning(f"Email domain has no dot: {domain!r}")
        return False

    return True


def parse_position(value: Any, default: int = 1) -> int:
    """
    Parse a 1-based message position.

    Uses the leading integer of the value's string form, so ``"3rd"``,
    ``3.0`` and ``"3"`` all give 3. Missing, unparsable and zero values
    fall back to ``default``. Negative values are returned as-is for the
    caller to reject.

    Args:
        value: Raw position from step data
        default: Position used when value cannot be parsed (default: 1)

    Returns:
        Parsed position
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, float):
        if not math.isfinite(value):
            return default
        value = int(value)

    match = _LEADING_INT.match(str(value))
    if not match:
        return default

    return int(match.group(1)) or default


def validate_field_name(field: Any, allowed: tuple[str, ...]) -> bool:
    """
    Validate a field name against a fixed set.

    Args:
        field: Field name from step data
        allowed: Accepted field names

    Returns:
        True if valid, False otherwise
    """
    if field not in allowed:
        logger.warning(f"Unsupported field {field!r}, expected one of {', '.join(allowed)}")
        return False
    return True


def validate_operator(operator: Any, allowed: tuple[str, ...]) -> bool:
    """
    Validate a comparison operator against the supported ones.

    Args:
        operator: Operator from step data
        allowed: Accepted operators

    Returns:
        True if valid, False otherwise
    """
    if operator not in allowed:
        logger.warning(f"Unsupported operator {operator!r}, expected one of {', '.join(allowed)}")
        return False
    return True
