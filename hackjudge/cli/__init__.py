#!/usr/bin/env python3
"""
hackjudge CLI

Usage:
    python -m hackjudge.cli <command> [options]

Commands:
    db          Database operations (init)
    hackathon   Hackathon inspection (list, show, ready)
    ledger      Ledger operations (verify)
    demo        Run one hackathon end to end with mock encryption

Environment:
    DATABASE_URL    Async SQLAlchemy URL (default: sqlite+aiosqlite:///./hackjudge.db)
    LOG_LEVEL       DEBUG|INFO|WARNING|ERROR
"""
import sys
import argparse
from typing import Optional

from hackjudge import __version__
from hackjudge.cli.db_commands import DbCommand
from hackjudge.cli.demo_commands import DemoCommand
from hackjudge.cli.hackathon_commands import HackathonCommand
from hackjudge.cli.ledger_commands import LedgerCommand
from hackjudge.config.settings import Settings
from hackjudge.logging_config import setup_logging


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="hackjudge",
        description="Hackathon judging core CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s db init
  %(prog)s hackathon list
  %(prog)s hackathon show --id 0
  %(prog)s ledger verify
  %(prog)s demo --seed 7
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or INFO)"
    )

    parser.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be done without executing"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Database commands
    db_parser = subparsers.add_parser("db", help="Database operations")
    db_subparsers = db_parser.add_subparsers(dest="db_action")
    db_subparsers.add_parser("init", help="Create all tables")

    # Hackathon commands
    hackathon_parser = subparsers.add_parser("hackathon", help="Hackathon inspection")
    hackathon_subparsers = hackathon_parser.add_subparsers(dest="hackathon_action")

    list_parser = hackathon_subparsers.add_parser("list", help="List hackathons")
    list_parser.add_argument("--offset", type=int, default=0, help="Skip this many hackathons")
    list_parser.add_argument("--limit", type=int, default=None, help="Show at most this many")

    show_parser = hackathon_subparsers.add_parser("show", help="Show one hackathon")
    show_parser.add_argument("--id", "-i", type=int, required=True, help="Hackathon ID")

    ready_parser = hackathon_subparsers.add_parser("ready", help="Check aggregation readiness")
    ready_parser.add_argument("--id", "-i", type=int, required=True, help="Hackathon ID")

    # Ledger commands
    ledger_parser = subparsers.add_parser("ledger", help="Ledger operations")
    ledger_subparsers = ledger_parser.add_subparsers(dest="ledger_action")
    ledger_subparsers.add_parser("verify", help="Verify the ledger hash chain")

    # Demo
    demo_parser = subparsers.add_parser("demo", help="Run the complete judging workflow")
    demo_parser.add_argument("--seed", type=int, default=None, help="Seed for the random demo scores")

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if not parsed.command:
        parser.print_help()
        return 1

    settings = Settings.from_env()
    if parsed.database_url:
        settings.database_url = parsed.database_url

    setup_logging(parsed.log_level or settings.log_level)

    command_map = {
        "db": DbCommand,
        "hackathon": HackathonCommand,
        "ledger": LedgerCommand,
        "demo": DemoCommand,
    }

    if parsed.command in command_map:
        handler = command_map[parsed.command](settings, dry_run=parsed.dry_run)
        return handler.execute(parsed)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
