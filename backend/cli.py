"""Command line entry point.

Usage:
    ncore-tracker                                # run API server + fetcher
    ncore-tracker --add-user "DisplayName,ProfileID"
"""

import argparse
import asyncio
import logging
import sys

import uvicorn

from config import Settings, get_settings, setup_logging
from exceptions import ConfigurationError, StorageError
from main import create_app
from models.account import Account
from state import build_state

logger = logging.getLogger(__name__)


def parse_add_user(value: str) -> tuple[str, str]:
    """Split "DisplayName,ProfileID" into its two parts."""
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 2 or not all(parts):
        raise ConfigurationError("Invalid format for --add-user. Use 'DisplayName,ProfileID'")
    return parts[0], parts[1]


async def add_user(settings: Settings, display_name: str, profile_id: str) -> Account:
    """Register a new account to track. Does not start the server or fetcher."""
    state = await build_state(settings)
    try:
        return await state.registry.add(display_name, profile_id)
    finally:
        await state.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ncore-tracker",
        description="Track nCore profile statistics and serve them over HTTP.",
    )
    parser.add_argument(
        "--add-user",
        metavar="NAME,PROFILE_ID",
        help="Add a new user. Provide as 'DisplayName,ProfileID'",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    new_user = None
    try:
        if args.add_user is not None:
            new_user = parse_add_user(args.add_user)
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(settings.log_level)
    logger.info("Application configuration loaded successfully")

    if new_user is not None:
        try:
            asyncio.run(add_user(settings, *new_user))
        except StorageError as e:
            logger.error(f"Failed to add user {new_user[0]}: {e}")
            return 1
        except OSError as e:
            logger.error(f"Could not open database at {settings.database_file}: {e}")
            return 1
        return 0

    logger.info(f"Server starting on {settings.server_host}:{settings.server_port}")
    uvicorn.run(
        create_app(),
        host=settings.server_host,
        port=settings.server_port,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
