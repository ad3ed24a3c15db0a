"""Command-line argument definitions for the sheila command."""

from __future__ import annotations

import argparse
import enum
from collections.abc import Sequence
from pathlib import Path


class OutputFormat(enum.Enum):
    """Formats test results, listings and reports can be written in."""

    TEXT = "text"
    JSON = "json"
    CSV = "csv"
    HTML = "html"
    JUNIT = "junit"
    TAP = "tap"

    def __str__(self) -> str:
        return self.value


def _output_format(text: str) -> OutputFormat:
    try:
        return OutputFormat(text)
    except ValueError:
        choices = ", ".join(str(fmt) for fmt in OutputFormat)
        raise argparse.ArgumentTypeError(
            f"invalid value '{text}' (possible values: {choices})"
        ) from None


def _comma_list(text: str) -> list[str]:
    return text.split(",")


def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number '{text}'") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"invalid number '{text}': must not be negative")
    return value


def _add_test_command(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "test", help="Run tests according to the specified inputs"
    )
    parser.add_argument(
        "target",
        nargs="?",
        help="Path to test file, test file with line number, test function name, or test tag",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run tests in headless mode (background) and return an ID",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logs from tests/test runner"
    )
    parser.add_argument(
        "-o", "--output", type=_output_format, help="Output format for test results"
    )
    parser.add_argument("-g", "--grep", help="Run tests matching the given grep expression")
    parser.add_argument(
        "--max-concurrent",
        type=_non_negative_int,
        help="Maximum number of concurrent test suites",
    )
    parser.add_argument("--fail-fast", action="store_true", help="Stop on first failure")
    parser.add_argument("--stream", action="store_true", default=True, help="Stream test output")
    parser.add_argument("--timeout", type=_non_negative_int, help="Test timeout in seconds")
    parser.add_argument(
        "--tags",
        type=_comma_list,
        action="extend",
        default=[],
        help="Include tests with specific tags",
    )
    parser.add_argument(
        "--exclude-tags",
        type=_comma_list,
        action="extend",
        default=[],
        help="Exclude tests with specific tags",
    )
    parser.add_argument("--output-dir", type=Path, help="Output directory for reports")


def _add_list_command(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "list", help="List all available test suites and their tests"
    )
    parser.add_argument(
        "path", nargs="?", type=Path, help="Path to test file or directory to list tests from"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show detailed information about each test"
    )
    parser.add_argument(
        "--tags", type=_comma_list, action="extend", default=[], help="Filter tests by tag"
    )
    parser.add_argument(
        "-f",
        "--format",
        type=_output_format,
        default=OutputFormat.TEXT,
        help="Output format for the list",
    )


def _add_report_command(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("report", help="Pretty print a JSON or CSV report")
    parser.add_argument("path", nargs="?", type=Path, help="Path to the report file to display")
    parser.add_argument(
        "-f", "--format", type=_output_format, help="Output format for displaying the report"
    )
    parser.add_argument("--failures-only", action="store_true", help="Show only failed tests")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show detailed test information"
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="sheila", description="Run, debug, and view results of sheila tests"
    )
    parser.add_argument("--version", action="version", version="%(prog)s 0.1.0")
    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    _add_test_command(subparsers)
    _add_list_command(subparsers)
    _add_report_command(subparsers)

    for name, help_text in (
        ("stop", "Stop a headless test running in the background"),
        ("pause", "Pause a headless test running in the background"),
        ("resume", "Resume a previously paused headless test running in the background"),
    ):
        control = subparsers.add_parser(name, help=help_text)
        control.add_argument("test_id")

    subparsers.add_parser("clear-cache", help="Clear all caches")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse ``argv`` (or the process arguments) into a namespace."""
    return build_parser().parse_args(argv)