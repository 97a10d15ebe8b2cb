"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
from pathlib import Path

# Add src to path for imports
PROJ_ROOT = Path(__file__).resolve().parent.parent
SRC_DIR = PROJ_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))
if str(PROJ_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJ_ROOT))


@pytest.fixture
def stored_messages():
    """Stored messages keyed by storage URL, newest first as Mailgun lists them."""
    return {
        "https://storage.mailgun.net/v3/domains/b.com/messages/M1": {
            "subject": "Your receipt",
            "from": "Billing <billing@shop.com>",
            "body-plain": "Thanks for your order.",
            "body-html": "<p>Thanks for your order.</p>",
        },
        "https://storage.mailgun.net/v3/domains/b.com/messages/M2": {
            "subject": "Hi there",
            "from": "Welcome Team <hello@app.com>",
            "body-plain": "Welcome aboard! Confirm your account.",
            "body-html": "<h1>Welcome aboard!</h1>",
        },
    }


@pytest.fixture
def inbox(stored_messages):
    """Stored events for a@b.com: M1 newest, M2 oldest."""
    return {
        "items": [
            {"event": "stored", "storage": {"url": url, "key": url.rsplit("/", 1)[-1]}}
            for url in stored_messages
        ],
        "paging": {},
    }


@pytest.fixture
def check_data():
    """Step data for the default scenario."""
    return {
        "email": "a@b.com",
        "position": 1,
        "field": "subject",
        "operator": "should contain",
        "expectation": "Hi",
    }
