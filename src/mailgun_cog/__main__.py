"""
Module entry point for running the cog as a Python module.

Usage:
    python -m mailgun_cog manifest
    python -m mailgun_cog steps
    python -m mailgun_cog run EmailFieldValidationStep --data '{...}'
    python -m mailgun_cog check "the subject of the 1st mailgun email for ..."
"""

from __future__ import annotations
import sys
from mailgun_cog.cli import main

if __name__ == "__main__":
    sys.exit(main())
