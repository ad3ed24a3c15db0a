"""Terminal formatting of messages, summaries and discovered test listings."""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Sequence
from datetime import timedelta
from pathlib import Path

from termcolor import colored

from sheila.cli.args import OutputFormat
from sheila.cli.discovery import DiscoveredFile
from sheila.cli.helpers import tag_color
from sheila.errors import SheilaError, format_relative_path

_HEADER_WIDTH = 60

_HTML_HEAD = (
    "<!DOCTYPE html>\n<html>\n<head>\n"
    "<title>Sheila Test Discovery</title>\n"
    "<style>\n"
    "body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; margin: 20px; }\n"
    ".file { margin-bottom: 30px; border: 1px solid #ddd; border-radius: 8px; }\n"
    ".file-header { background: #f8f9fa; padding: 15px; border-bottom: 1px solid #ddd; }\n"
    ".suite { margin: 15px; }\n"
    ".test { margin-left: 20px; padding: 5px 0; }\n"
    ".test.ignored { opacity: 0.6; }\n"
    ".tag { background: #e9ecef; padding: 2px 6px; border-radius: 3px; "
    "font-size: 0.8em; margin-left: 5px; }\n"
    "</style>\n</head>\n<body>\n"
    "<h1>Test Discovery Results</h1>\n"
)


def _dim(text: str) -> str:
    return colored(text, attrs=["dark"])


def _seconds(duration: float | timedelta) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


def format_header(title: str) -> str:
    """A centred title between two separator lines."""
    separator = colored("=" * _HEADER_WIDTH, "magenta", attrs=["bold"])
    padding = " " * max(0, _HEADER_WIDTH // 2 - len(title) // 2)
    title_colored = colored(title, "magenta", attrs=["bold"])
    return f"\n{separator}\n{padding}{title_colored}{padding}\n{separator}\n"


def format_success(message: str) -> str:
    return f"{colored('✓', 'light_green', attrs=['bold'])} {colored(message, 'light_green')}\n"


def format_error(message: str) -> str:
    return f"{colored('✗', 'light_red', attrs=['bold'])} {colored(message, 'light_red')}"


def format_warning(message: str) -> str:
    return f"{colored('⚠', 'yellow', attrs=['bold'])} {colored(message, 'yellow')}"


def format_info(message: str) -> str:
    return f"{colored('ℹ', 'blue', attrs=['bold'])} {colored(message, 'white')}"


def format_progress(message: str) -> str:
    return f"{colored('⏳', 'cyan')} {colored(message, 'cyan')}"


def format_duration(duration: float | timedelta) -> str:
    """Milliseconds below a second, seconds to two places below a minute, else m/s."""
    seconds = _seconds(duration)
    millis = int(seconds * 1000)
    if millis < 1000:
        return f"{millis}ms"
    if millis < 60_000:
        return f"{seconds:.2f}s"
    whole = int(seconds)
    return f"{whole // 60}m {whole % 60}s"


def format_test_summary(
    passed: int, failed: int, total: int, duration: float | timedelta
) -> str:
    status_color = "green" if failed == 0 else "red"
    passed_text = colored(str(passed), status_color, attrs=["bold"])
    if failed == 0:
        failed_text = colored(str(failed), attrs=["dark", "bold"])
    else:
        failed_text = colored(str(failed), "red", attrs=["bold"])
    return (
        f"\n{colored('Summary:', 'white', attrs=['bold'])}\n"
        f"  {passed_text} passed\n"
        f"  {failed_text} failed\n"
        f"  {colored(str(total), 'white', attrs=['bold'])} total\n"
        f"  Time: {colored(format_duration(duration), 'white')}\n"
    )


def format_abridged_summary(
    passed: int, failed: int, total: int, duration: float | timedelta
) -> str:
    parts = [
        colored(f"✓ {passed}", "light_green", attrs=["bold"]),
        _dim("passed,"),
        colored(f"✗ {failed}", "red", attrs=["bold"]),
        _dim("failed,"),
        colored(str(total), "white", attrs=["bold"]),
        _dim("total"),
        _dim(f"({format_duration(duration)} elapsed)"),
    ]
    return "\n" + " ".join(parts) + "\n"


def format_test_files(files: Sequence[DiscoveredFile], output_format: OutputFormat) -> str:
    """Render discovered files as text, JSON, CSV or HTML.

    Raises SheilaError for formats that listings do not support.
    """
    if output_format is OutputFormat.JSON:
        return _format_json(files)
    if output_format is OutputFormat.CSV:
        return _format_csv(files)
    if output_format is OutputFormat.HTML:
        return _format_html(files)
    if output_format is OutputFormat.TEXT:
        return _format_text(files)
    raise SheilaError(f"Unsupported output format: {output_format}")


def _file_to_dict(test_file: DiscoveredFile) -> dict:
    data = dataclasses.asdict(test_file)
    data["path"] = str(test_file.path)
    return data


def _format_json(files: Sequence[DiscoveredFile]) -> str:
    return json.dumps([_file_to_dict(f) for f in files], indent=2, ensure_ascii=False)


def _format_csv(files: Sequence[DiscoveredFile]) -> str:
    lines = ["file_path,suite_name,test_name,line_number,tags,ignored"]
    for test_file in files:
        for suite in test_file.suites:
            for test in suite.tests:
                lines.append(
                    f'"{test_file.path}","{suite.name}","{test.name}",'
                    f'{test.line_number or 0},"{";".join(test.tags)}",'
                    f"{str(test.ignored).lower()}"
                )
    return "\n".join(lines) + "\n"


def _format_html(files: Sequence[DiscoveredFile]) -> str:
    parts = [_HTML_HEAD]
    for test_file in files:
        parts.append('<div class="file">\n')
        parts.append(f'<div class="file-header"><h2>{test_file.path}</h2></div>\n')
        for suite in test_file.suites:
            parts.append('<div class="suite">\n')
            parts.append(f"<h3>● {suite.name}</h3>\n")
            if not suite.tests:
                parts.append("<p><em>No tests in this suite</em></p>\n")
            for test in suite.tests:
                ignored_class = " ignored" if test.ignored else ""
                icon = "○" if test.ignored else "✓"
                parts.append(f'<div class="test{ignored_class}">\n')
                parts.append(f"{icon} {test.name} [line {test.line_number or 0}]")
                parts.extend(f'<span class="tag">{tag}</span>' for tag in test.tags)
                parts.append("</div>\n")
            parts.append("</div>\n")
        parts.append("</div>\n")
    parts.append("</body>\n</html>\n")
    return "".join(parts)


def _display_path(path: Path) -> str:
    try:
        return format_relative_path(Path(path).resolve())
    except ValueError:
        return str(path)


def _format_text(files: Sequence[DiscoveredFile]) -> str:
    parts = ["\n\n"]
    total_suites = 0
    total_tests = 0
    ignored_tests = 0

    for test_file in files:
        parts.append(f"{colored(_display_path(test_file.path), 'cyan')}\n")
        for suite in test_file.suites:
            total_suites += 1
            parts.append(f"  {colored('●', 'light_blue')} {colored(suite.name, 'white')}\n")
            if not suite.tests:
                parts.append(f"    {_dim('No tests in this suite')}\n")
                continue
            for test in suite.tests:
                total_tests += 1
                if test.ignored:
                    ignored_tests += 1
                    icon = colored("○", "yellow")
                else:
                    icon = colored("✓", "green")
                line = f"    {icon} {test.name}"
                if test.line_number is not None:
                    line += " " + _dim(f"[line {test.line_number}]")
                for tag in test.tags:
                    label = "@" + tag.replace('"', "").replace("[", "").replace("]", "")
                    line += " " + colored(label, tag_color(label))
                attributes = []
                if test.timeout is not None:
                    attributes.append(f"timeout {test.timeout}s")
                if test.retries is not None:
                    attributes.append(f"retries {test.retries}")
                if attributes:
                    line += " " + _dim(f"[{', '.join(attributes)}]")
                parts.append(line + "\n")
        parts.append("\n")

    active_tests = total_tests - ignored_tests
    summary = (
        f"Found {len(files)} files, {total_suites} test suites, "
        f"{active_tests} tests ({ignored_tests} ignored)"
    )
    parts.append(f"{colored(summary, 'white', attrs=['bold'])}\n\n")
    return "".join(parts)