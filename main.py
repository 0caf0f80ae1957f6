"""Command-line interface for the quotebook record service."""

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from quotebook.config import Settings, load_settings
from quotebook.storage import Database

logger = logging.getLogger("quotebook.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Quotebook record service utilities")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a YAML settings file (default: $QUOTEBOOK_CONFIG)",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the quotebook database")
    subparsers.add_parser("stats", help="Print the number of stored users, quotes and comments")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port for the HTTP API (default: 8000)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "stats"}

    # Global options come first; anything unrecognised after them is treated
    # as an option for the default ``serve`` command.
    prefix: list[str] = []
    while args_list and args_list[0] == "--config" and len(args_list) > 1:
        prefix.extend(args_list[:2])
        args_list = args_list[2:]

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args([*prefix, *args_list])
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args([*prefix, *args_list])
            args_list = ["serve", *args_list]

    return parser.parse_args([*prefix, *args_list])


def _initialise_database(settings: Settings) -> Database:
    database = Database(
        settings.database_path,
        max_user_bytes=settings.max_user_bytes,
        max_quote_bytes=settings.max_quote_bytes,
        max_comment_bytes=settings.max_comment_bytes,
    )
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(*, database: Database, host: str, port: int) -> None:
    from quotebook.api import create_app
    from quotebook.service import QuoteService
    import uvicorn

    logger.info("Starting quotebook API on http://%s:%s", host, port)

    app = create_app(service=QuoteService(database))
    uvicorn.run(app, host=host, port=port, log_level="info")


def _print_stats(database: Database) -> None:
    for collection in (database.users, database.quotes, database.comments):
        print(f"{collection.name}: {len(collection)}")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    config_path = Path(args.config).expanduser().resolve(strict=False) if args.config else None
    try:
        settings = load_settings(config_path)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Unable to load settings: {exc}") from exc

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    database = _initialise_database(settings)

    if args.command == "serve":
        _serve(database=database, host=args.host, port=args.port)
    elif args.command == "stats":
        _print_stats(database)
    elif args.command == "init-db":
        print("Database initialisation complete.")


if __name__ == "__main__":
    main()
