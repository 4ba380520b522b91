"""
Command-line entry point.

    python -m itemserver                     # 127.0.0.1:8000
    python -m itemserver --port 9000
    python -m itemserver --host 0.0.0.0 --capacity 500 --no-seed
    ITEMS_LOG_LEVEL=DEBUG itemserver --log-format json

Flags override ITEMS_* environment variables, which override defaults.
"""

import argparse
import sys
from dataclasses import replace
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig, LOG_LEVELS, LOG_FORMATS
from .server import ItemServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="itemserver",
        description="In-memory JSON items API over HTTP/1.1",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Endpoints:
  GET    /                     greeting
  GET    /api/v1/items         list items
  POST   /api/v1/items         create {"name": str, "value": number}
  GET    /api/v1/items/{id}    fetch one
  PUT    /api/v1/items/{id}    update name and/or value
  DELETE /api/v1/items/{id}    delete
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on, 0 for any free port (default: {defaults.port})"
    )
    parser.add_argument(
        "--keep-alive",
        action="store_true",
        default=defaults.keep_alive,
        help="Serve several requests per connection"
    )

    # ─────────────────────────────────────────────────────────────────────
    # STORE
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--capacity",
        type=int,
        default=defaults.store_capacity,
        help=f"Maximum number of items held at once (default: {defaults.store_capacity})"
    )
    parser.add_argument(
        "--no-seed",
        dest="seed",
        action="store_false",
        default=defaults.seed_sample_items,
        help="Do not insert sample items into an empty store"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level})"
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"itemserver {__version__}"
    )
    return parser


def config_from_args(args: argparse.Namespace, base: ServerConfig) -> ServerConfig:
    return replace(
        base,
        host=args.host,
        port=args.port,
        keep_alive=args.keep_alive,
        store_capacity=args.capacity,
        seed_sample_items=args.seed,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, build the server, serve until stopped."""
    try:
        base = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    parser = build_parser(base)
    args = parser.parse_args(argv)

    try:
        server = ItemServer(config_from_args(args, base))
    except ValueError as e:
        parser.error(str(e))

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
