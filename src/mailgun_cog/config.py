"""
Configuration management with validation and client bootstrap.
"""

from __future__ import annotations
import os
from typing import TypedDict

from dotenv import load_dotenv

from mailgun_cog.auth import MissingCredentialsError
from mailgun_cog.logging import logger
from mailgun_cog.mailgun.client import MailgunClient
from mailgun_cog.mailgun.client_async import AsyncMailgunClient
from mailgun_cog.utils.rate_limiter import AsyncRateLimiter


class Config(TypedDict):
    """Typed configuration dictionary."""
    MAILGUN_API_KEY: str
    MAILGUN_DOMAIN: str
    MAILGUN_REGION: str
    MAILGUN_API_BASE_URL: str
    MAILGUN_TIMEOUT: int  # Request timeout in seconds (default: 30)
    MAILGUN_RATE_LIMIT_PER_MINUTE: int  # Rate limit for Mailgun API calls per minute (default: 300)
    LOG_LEVEL: str
    LOG_FILE: str | None


def _load_env() -> Config:
    """
    Load environment variables and return validated configuration.

    Required vars:
      - MAILGUN_API_KEY
      - MAILGUN_DOMAIN

    Optional vars with defaults:
      - MAILGUN_REGION (default: "us"; "eu" for the EU endpoint)
      - MAILGUN_API_BASE_URL (default: derived from region)
      - MAILGUN_TIMEOUT (default: 30)
      - MAILGUN_RATE_LIMIT_PER_MINUTE (default: 300)
      - LOG_LEVEL (default: "INFO")
      - LOG_FILE (default: None)
    """
    load_dotenv()

    api_key = os.getenv("MAILGUN_API_KEY", "").strip()
    domain = os.getenv("MAILGUN_DOMAIN", "").strip()

    if not api_key:
        raise ValueError("MAILGUN_API_KEY environment variable is required")
    if not domain:
        raise ValueError("MAILGUN_DOMAIN environment variable is required")

    region = os.getenv("MAILGUN_REGION", "us").strip().lower()
    if region not in MailgunClient.BASE_URLS:
        raise ValueError(
            f"MAILGUN_REGION must be one of {', '.join(MailgunClient.BASE_URLS)}, got {region!r}"
        )
    base_url = os.getenv("MAILGUN_API_BASE_URL", "").strip() or MailgunClient.BASE_URLS[region]

    timeout = int(os.getenv("MAILGUN_TIMEOUT", "30"))
    if not (1 <= timeout <= 300):
        raise ValueError(
            f"MAILGUN_TIMEOUT must be between 1 and 300 seconds, got {timeout}"
        )

    rate_limit = int(os.getenv("MAILGUN_RATE_LIMIT_PER_MINUTE", "300"))
    if not (1 <= rate_limit <= 1000):
        raise ValueError(
            f"MAILGUN_RATE_LIMIT_PER_MINUTE must be between 1 and 1000, got {rate_limit}"
        )

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    log_file = os.getenv("LOG_FILE", "").strip() or None

    cfg: Config = {
        "MAILGUN_API_KEY": api_key,
        "MAILGUN_DOMAIN": domain,
        "MAILGUN_REGION": region,
        "MAILGUN_API_BASE_URL": base_url,
        "MAILGUN_TIMEOUT": timeout,
        "MAILGUN_RATE_LIMIT_PER_MINUTE": rate_limit,
        "LOG_LEVEL": log_level,
        "LOG_FILE": log_file,
    }

    logger.debug(f"Configuration loaded: domain={domain}, base_url={base_url}, LOG_LEVEL={log_level}")
    return cfg


def _init_client(cfg: Config) -> AsyncMailgunClient:
    """
    Bootstrap the authenticated async Mailgun client.

    Args:
        cfg: Configuration dictionary

    Returns:
        AsyncMailgunClient shared by every step run

    Raises:
        MissingCredentialsError: If the auth fields are invalid
    """
    try:
        rate_limiter = AsyncRateLimiter(
            max_calls=cfg["MAILGUN_RATE_LIMIT_PER_MINUTE"],
            time_window_seconds=60,
        )
        client = AsyncMailgunClient.from_auth(
            {"apiKey": cfg["MAILGUN_API_KEY"], "domain": cfg["MAILGUN_DOMAIN"]},
            base_url=cfg["MAILGUN_API_BASE_URL"],
            timeout=cfg["MAILGUN_TIMEOUT"],
            rate_limiter=rate_limiter,
        )
    except MissingCredentialsError as e:
        logger.error(f"Failed to initialize Mailgun client: {e}")
        raise

    logger.info(f"Mailgun client initialized for {cfg['MAILGUN_DOMAIN']}")
    return client
