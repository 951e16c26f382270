"""Betstreak CLI entry point."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from betstreak import __version__
from betstreak.config import get_settings
from betstreak.services.stake import StakeError, UserNotFound, format_number
from betstreak.storage import (
    JsonFileStore,
    StorageUnavailable,
    initialize_state,
    load_state,
)
from betstreak.tracker import open_tracker

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = """# Betstreak Configuration
# Operational parameters only. The Stake access token and Telegram
# credentials belong in .env, not here.

stake:
  api_url: https://stake.com/_api/graphql
  timeout_seconds: 30

scheduler:
  check_interval_seconds: 60
  poll_in_server: false

telegram:
  send_bet_alerts: true
"""


def _init_logfire() -> None:
    """Initialize Logfire if available, without failing commands."""
    try:
        from betstreak.observability import initialize_logfire

        initialize_logfire(get_settings())
    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize data directory, config template and empty state document."""
    data_dir = Path(args.data_dir).resolve()

    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created data directory: {data_dir}")

        config_path = data_dir / "config.yaml"
        if not config_path.exists():
            config_path.write_text(CONFIG_TEMPLATE)
            logger.info(f"Created config template: {config_path}")
        else:
            logger.info(f"Config file already exists: {config_path}")

        state_path = data_dir / get_settings().state_file
        initialize_state(JsonFileStore(state_path), overwrite=args.reset)

        print(f"\n✓ Data directory initialized at {data_dir}")
        print("\nNext steps:")
        print("1. Add STAKE_API_TOKEN to .env")
        print("2. Run 'python -m betstreak config' to verify configuration")
        print("3. Run 'python -m betstreak serve' to start the API\n")

        return 0

    except (OSError, StorageUnavailable) as e:
        logger.error(f"Failed to initialize: {e}")
        print(f"\n❌ Initialization failed: {e}\n")
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== Betstreak Configuration ===\n")
        print(f"Data Directory: {settings.data_dir}")
        print(f"State File: {settings.state_path}\n")

        print("Server:")
        print(f"  Listen: {settings.host}:{settings.port}")
        print(f"  Allowed Origins: {', '.join(settings.allowed_origins)}\n")

        print("Stake:")
        print(f"  API URL: {settings.stake.api_url}")
        print(f"  Timeout: {settings.stake.timeout_seconds}s\n")

        print("Scheduler:")
        print(f"  Check Interval: {settings.scheduler.check_interval_seconds}s")
        print(f"  Poll In Server: {settings.scheduler.poll_in_server}\n")

        print("API Keys:")
        print(f"  Stake: {'✓ Set' if settings.stake_api_token else '✗ Not set'}")
        print(f"  Telegram: {'✓ Set' if settings.telegram_enabled else '✗ Not set'}")
        print(f"  Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")

        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1


def cmd_status(args: argparse.Namespace) -> int:
    """Display the current streak."""
    try:
        state = load_state(JsonFileStore(get_settings().state_path))
    except StorageUnavailable as e:
        print(f"\n❌ Failed to read status: {e}\n")
        return 1

    print("\n=== Betstreak Status ===\n")
    print(f"Streak: {state.streak}")
    print(f"Last Bet ID: {state.last_bet_id or '(none)'}")
    print(f"Status: {state.status}")
    print(f"Bets Recorded: {len(state.history)}\n")
    return 0


def cmd_history(args: argparse.Namespace) -> int:
    """List recorded bets, most recent first."""
    try:
        history = load_state(JsonFileStore(get_settings().state_path)).recent_first()
    except StorageUnavailable as e:
        print(f"\n❌ Failed to read history: {e}\n")
        return 1

    print(f"\n=== Bet History ({len(history)}) ===\n")
    if not history:
        print("  (None)\n")
        return 0

    for i, bet in enumerate(history[: args.limit], 1):
        print(
            f"  {i}. {bet.id}  {format_number(bet.amount)} {bet.currency_symbol.upper()}"
            f"  x{format_number(bet.potential_multiplier)}  [{bet.status or '?'}]"
        )
    if len(history) > args.limit:
        print(f"  ... and {len(history) - args.limit} more")
    print()
    return 0


def cmd_profile(args: argparse.Namespace) -> int:
    """Fetch the Stake user profile."""
    _init_logfire()

    async def run():
        async with open_tracker(get_settings()) as tracker:
            return await tracker.get_user_profile()

    try:
        profile = asyncio.run(run())
    except UserNotFound as e:
        print(f"\n❌ User not found: {e}\n")
        return 1
    except StakeError as e:
        logger.error(f"Profile fetch failed: {e}")
        print(f"\n❌ Profile fetch failed: {e}\n")
        return 1

    print("\n=== Stake Profile ===\n")
    print(f"Name: {profile.name}")
    print(f"Avatar: {profile.avatar_url or '(none)'}")
    print(f"USDT Balance: {profile.usdt:,.2f}\n")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Run one new-bet check."""
    _init_logfire()

    from betstreak.scheduler import run_check

    try:
        result = asyncio.run(run_check(get_settings()))
    except (StorageUnavailable, StakeError) as e:
        logger.error(f"Bet check failed: {e}")
        print(f"\n❌ Bet check failed: {e}\n")
        return 1

    if result.new_bet and result.bet is not None:
        print(f"\n✓ New bet recorded: {result.bet.id}\n")
    else:
        print(f"\n{result.message}\n")
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    """Poll Stake on an interval."""
    _init_logfire()

    from betstreak.scheduler import watch

    settings = get_settings()
    if args.interval:
        settings.scheduler.check_interval_seconds = args.interval

    try:
        asyncio.run(watch(settings))
    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the HTTP API."""
    from betstreak.api import run_server

    settings = get_settings()
    if args.port:
        settings.port = args.port
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    print(f"\n=== Betstreak API v{__version__} ===\n")
    print(f"Listening on http://{settings.host}:{settings.port}\n")

    try:
        run_server(settings)
    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
    return 0


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Betstreak: streak tracker for Stake bets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Betstreak {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_init = subparsers.add_parser(
        "init",
        help="Initialize data directory, config and state document",
    )
    parser_init.add_argument(
        "--data-dir",
        default="data",
        help="Data directory to create (default: data)",
    )
    parser_init.add_argument(
        "--reset",
        action="store_true",
        help="Overwrite an existing state document with an empty one",
    )
    parser_init.set_defaults(func=cmd_init)

    parser_config = subparsers.add_parser("config", help="Display merged configuration")
    parser_config.set_defaults(func=cmd_config)

    parser_status = subparsers.add_parser("status", help="Display current streak")
    parser_status.set_defaults(func=cmd_status)

    parser_history = subparsers.add_parser("history", help="List recorded bets")
    parser_history.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Maximum number of bets to print (default: 20)",
    )
    parser_history.set_defaults(func=cmd_history)

    parser_profile = subparsers.add_parser("profile", help="Fetch Stake user profile")
    parser_profile.set_defaults(func=cmd_profile)

    parser_check = subparsers.add_parser("check", help="Run one new-bet check")
    parser_check.set_defaults(func=cmd_check)

    parser_watch = subparsers.add_parser("watch", help="Poll Stake for new bets")
    parser_watch.add_argument(
        "--interval",
        type=int,
        help="Seconds between checks (overrides config)",
    )
    parser_watch.set_defaults(func=cmd_watch)

    parser_serve = subparsers.add_parser("serve", help="Start the HTTP API")
    parser_serve.add_argument("--port", type=int, help="Listen port (overrides PORT)")
    parser_serve.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
