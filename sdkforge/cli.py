"""Command-line entry point for sdkforge."""

from __future__ import annotations

import argparse
import sys

from rich.console import Console

from . import __version__
from .logging_config import get_logger, setup_logging
from .regen.cli_integration import create_regen_subparsers

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="sdkforge",
        description="Regenerate SDKs without losing manual edits",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    create_regen_subparsers(subparsers)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    logger.debug("Running command: %s", args.command)
    try:
        return args.func(args)
    except KeyboardInterrupt:
        Console().print("\n[yellow]👋 Interrupted[/yellow]")
        return 130
    except Exception as e:
        logger.error("Unexpected error: %s", e, exc_info=True)
        Console().print(f"[red]✗ Unexpected error:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
