"""CLI entry point for winzig."""

import argparse
import sys
from typing import NoReturn

from loguru import logger

from .. import __version__
from ..core.config import Config
from . import commands


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="winzig",
        description="winzig - schema scripts, migrations and resource-address queries for SQLite",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=False)

    # split
    split_parser = subparsers.add_parser("split", help="Show the statements of a SQL script")
    split_parser.add_argument("file", help="Script file")
    split_parser.add_argument(
        "--literal-aware",
        action="store_true",
        help="Keep comment markers inside quoted literals",
    )

    # migrate
    migrate_parser = subparsers.add_parser("migrate", help="Create or upgrade the database schema")
    migrate_parser.add_argument("--db", help="Database file (default: $WINZIG_DB_PATH)")
    migrate_parser.add_argument("--scripts", help="Script directory (default: $WINZIG_SCRIPTS_DIR)")
    migrate_parser.add_argument("--version", type=int, dest="version", help="Target schema version")
    migrate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when an upgrade script is missing instead of skipping it",
    )

    # status
    status_parser = subparsers.add_parser("status", help="Show database status")
    status_parser.add_argument("--db", help="Database file (default: $WINZIG_DB_PATH)")

    # query
    query_parser = subparsers.add_parser("query", help="Query a resource address")
    query_parser.add_argument("uri", help="Address, e.g. content://winzig/notes/1")
    query_parser.add_argument("--db", help="Database file (default: $WINZIG_DB_PATH)")
    query_parser.add_argument("-p", "--projection", nargs="+", help="Columns to select")
    query_parser.add_argument("-w", "--where", help="Selection, or the statement for raw queries")
    query_parser.add_argument("-a", "--arg", action="append", help="Selection argument (repeatable)")
    query_parser.add_argument("-o", "--order-by", help="ORDER BY clause")

    return parser


def configure_logging(level: str) -> None:
    """Send log output to stderr at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level)


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.from_env()
        configure_logging("DEBUG" if args.verbose else config.log_level)

        if args.command == "split":
            commands.handle_split(args, config)
        elif args.command == "migrate":
            commands.handle_migrate(args, config)
        elif args.command == "status":
            commands.handle_status(args, config)
        elif args.command == "query":
            commands.handle_query(args, config)
        else:
            parser.print_help()

        sys.exit(0)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
