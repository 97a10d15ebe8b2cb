"""
Usage example: run an email check from Python.

Reads MAILGUN_API_KEY / MAILGUN_DOMAIN from the environment (or .env) and
checks the subject of the first stored message for an address.
"""

import asyncio
from mailgun_cog.config import _load_env, _init_client
from mailgun_cog.core.registry import StepRegistry
from mailgun_cog.logging import logger, setup_logging


async def main():
    cfg = _load_env()
    setup_logging(
        log_level=cfg["LOG_LEVEL"],
        log_file=cfg["LOG_FILE"],
    )

    client = _init_client(cfg)
    registry = StepRegistry(client)
    try:
        # Structured data, as the host sends it
        response = await registry.run_step("EmailFieldValidationStep", {
            "email": f"qa@{cfg['MAILGUN_DOMAIN']}",
            "position": 1,
            "field": "subject",
            "operator": "should contain",
            "expectation": "Welcome",
        })
        logger.info(f"{response.outcome.value}: {response.message}")

        # Same check written as a sentence
        response = await registry.run_text(
            f"the subject of the 1st mailgun email for qa@{cfg['MAILGUN_DOMAIN']} should contain Welcome"
        )
        logger.info(f"{response.outcome.value}: {response.message}")
    finally:
        client.close()


if __name__ == "__main__":
    asyncio.run(main())
