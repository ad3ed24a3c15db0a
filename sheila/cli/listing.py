"""The list command: show discovered suites and tests."""

from __future__ import annotations

import argparse

from sheila.cli.args import OutputFormat
from sheila.cli.discovery import Discoverer
from sheila.cli.output import format_test_files
from sheila.errors import SheilaError

NO_FILES_MESSAGE = "No test files found."


def run(args: argparse.Namespace) -> int:
    """Discover tests under ``args.path`` (or the current directory) and print them."""
    discoverer = Discoverer()
    path = getattr(args, "path", None)
    test_files = discoverer.discover(path) if path is not None else discoverer.discover_current()

    if not test_files:
        print(NO_FILES_MESSAGE)
        return 0

    output_format = getattr(args, "format", None) or OutputFormat.TEXT
    try:
        output = format_test_files(test_files, output_format)
    except SheilaError as exc:
        raise SheilaError("Failed to format test files") from exc
    print(output, end="")
    return 0