"""Entry point of the sheila command."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from sheila.cli import listing, reports
from sheila.cli.args import parse_args
from sheila.cli.maintenance import clear_cache, pause, resume, stop
from sheila.cli.output import format_error, format_warning
from sheila.errors import SheilaError


def _run_tests(args: argparse.Namespace) -> int:
    print()
    if args.headless:
        print(format_warning("Headless mode not implemented"))
        return 0
    raise SheilaError("No test runner is available to execute tests")


def _dispatch(args: argparse.Namespace) -> int:
    command = args.command
    if command == "test":
        return _run_tests(args)
    if command == "list":
        return listing.run(args)
    if command == "report":
        return reports.run(args)
    if command == "stop":
        stop(args.test_id)
    elif command == "pause":
        pause(args.test_id)
    elif command == "resume":
        resume(args.test_id)
    elif command == "clear-cache":
        clear_cache()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Run the sheila command and return its exit status."""
    args = parse_args(argv)
    try:
        return _dispatch(args)
    except SheilaError as exc:
        print(format_error(str(exc)), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())