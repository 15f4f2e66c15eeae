"""Command-line entry for lifelist."""

from __future__ import annotations

import argparse
import sys
from typing import NoReturn

from . import run_server
from .core.exceptions import LifelistError


def _non_negative_int(value: str) -> int:
    count = int(value)
    if count < 0:
        raise argparse.ArgumentTypeError(f"must be a non-negative integer: {value}")
    return count


def _create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the lifelist CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="lifelist",
        description="lifelist - personal event and todo aggregator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m lifelist                                # Serve example/data.yaml on port 8080
  python -m lifelist --data-file ~/life.yaml        # Serve another data file
  python -m lifelist --upcoming 10                  # Print the next 10 occurrences
  python -m lifelist --upcoming 5 --from "Jan 1"    # ...starting from a given day
        """,
    )

    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number for the web server (default: 8080, or from LIFELIST_WEB_PORT env var)",
    )
    parser.add_argument(
        "--host",
        metavar="HOST",
        help="Host to bind (default: 127.0.0.1, or from LIFELIST_WEB_HOST env var)",
    )
    parser.add_argument(
        "--data-file",
        metavar="PATH",
        help="YAML events file (default: example/data.yaml, or from LIFELIST_DATA_FILE env var)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log level (default: INFO, or from LIFELIST_LOG_LEVEL env var)",
    )
    parser.add_argument(
        "--upcoming",
        type=_non_negative_int,
        metavar="N",
        help="Print the next N occurrences as JSON and exit",
    )
    parser.add_argument(
        "--from",
        dest="from_date",
        metavar="DATE",
        help="Start day for --upcoming (free-form, default: today)",
    )

    return parser


def main() -> NoReturn:
    """Run the lifelist CLI."""
    parser = _create_parser()
    args = parser.parse_args()

    try:
        run_server(args)
    except LifelistError as exc:
        print(f"lifelist: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(0)


if __name__ == "__main__":
    main()
