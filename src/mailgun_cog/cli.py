"""
Command-line interface for the Mailgun cog.
"""

from __future__ import annotations
import sys
import json
import asyncio
import argparse

from mailgun_cog.config import _load_env, _init_client
from mailgun_cog.core.base_step import Outcome, RunStepResponse
from mailgun_cog.core.registry import StepRegistry
from mailgun_cog.logging import logger, setup_logging

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _build_registry() -> StepRegistry:
    cfg = _load_env()
    setup_logging(
        log_level=cfg["LOG_LEVEL"],
        log_file=cfg["LOG_FILE"],
    )
    return StepRegistry(_init_client(cfg))


def _report(response: RunStepResponse, as_json: bool) -> int:
    if as_json:
        print(json.dumps(response.to_dict(), indent=2))
    else:
        print(f"{response.outcome.value}: {response.message}")
    return EXIT_OK if response.outcome is Outcome.PASSED else EXIT_FAILED


def cmd_manifest(args) -> int:
    """Print the cog manifest as JSON."""
    registry = _build_registry()
    print(json.dumps(registry.get_manifest().to_dict(), indent=2))
    return EXIT_OK


def cmd_steps(args) -> int:
    """List step ids and their expressions."""
    registry = _build_registry()
    for definition in registry.get_manifest().step_definitions:
        print(f"{definition.step_id} [{definition.type.value}] {definition.name}")
        print(f"    {definition.expression}")
    return EXIT_OK


def cmd_run(args) -> int:
    """Run one step with structured JSON data."""
    try:
        data = json.loads(args.data)
    except json.JSONDecodeError as e:
        logger.error(f"--data is not valid JSON: {e}")
        return EXIT_USAGE
    if not isinstance(data, dict):
        logger.error("--data must be a JSON object")
        return EXIT_USAGE

    registry = _build_registry()
    response = asyncio.run(registry.run_step(args.step_id, data))
    return _report(response, args.json)


def cmd_check(args) -> int:
    """Run the step matching a free-text sentence."""
    registry = _build_registry()
    response = asyncio.run(registry.run_text(args.text))
    return _report(response, args.json)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="mailgun-cog",
        description="Mailgun cog - assert on emails stored by Mailgun",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s manifest
  %(prog)s steps
  %(prog)s run EmailFieldValidationStep --data '{"email": "qa@mg.example.com", "position": 1, "field": "subject", "operator": "should contain", "expectation": "Welcome"}'
  %(prog)s check "the subject of the 1st mailgun email for qa@mg.example.com should contain Welcome"
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    manifest_parser = subparsers.add_parser("manifest", help="Print the cog manifest")
    manifest_parser.set_defaults(func=cmd_manifest)

    steps_parser = subparsers.add_parser("steps", help="List available steps")
    steps_parser.set_defaults(func=cmd_steps)

    run_parser = subparsers.add_parser("run", help="Run a step with JSON data")
    run_parser.add_argument("step_id", help="Step id, e.g. EmailFieldValidationStep")
    run_parser.add_argument("--data", default="{}", help="Step data as a JSON object")
    run_parser.add_argument("--json", action="store_true", help="Print the full response as JSON")
    run_parser.set_defaults(func=cmd_run)

    check_parser = subparsers.add_parser("check", help="Run the step matching a sentence")
    check_parser.add_argument("text", help="Step sentence")
    check_parser.add_argument("--json", action="store_true", help="Print the full response as JSON")
    check_parser.set_defaults(func=cmd_check)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_USAGE

    try:
        return args.func(args)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_USAGE
    except Exception as e:
        logger.exception(f"Command {args.command} failed: {e}")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
