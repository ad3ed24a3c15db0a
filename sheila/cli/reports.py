"""The report command: display saved JSON, CSV, HTML or text reports."""

from __future__ import annotations

import argparse
import csv
import io
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from os import PathLike
from pathlib import Path
from typing import Any

from termcolor import colored

from sheila.cli.args import OutputFormat
from sheila.cli.helpers import format_duration, get_default_output_dir, get_most_recent_report
from sheila.cli.output import format_error, format_info, format_success, format_warning
from sheila.errors import SheilaError

_NO_REPORTS = "No reports found. Run tests first to generate a report."
_BREAK_TAGS = ("<br>", "<br/>", "</p>", "</div>", "</h1>", "</h2>", "</h3>", "</li>")
_FRACTION = re.compile(r"(\.\d{6})\d+")


@dataclass
class _TestEntry:
    name: str
    status: str
    duration: float | None
    error: str | None


@dataclass
class _SuiteEntry:
    name: str
    tests: list[_TestEntry]

    def all_passed(self) -> bool:
        return all(test.status != "failed" for test in self.tests)


@dataclass
class _RunSummary:
    total: int
    passed: int
    failed: int
    skipped: int
    start_time: datetime
    suites: list[_SuiteEntry]


def detect_file_format(path: str | PathLike[str]) -> OutputFormat:
    """Guess a report's format from its extension, JSON when unknown."""
    suffix = Path(path).suffix
    if suffix == ".csv":
        return OutputFormat.CSV
    if suffix in (".html", ".htm"):
        return OutputFormat.HTML
    if suffix == ".txt":
        return OutputFormat.TEXT
    return OutputFormat.JSON


def _read_csv(content: str) -> tuple[list[str], list[list[str]]]:
    try:
        rows = [row for row in csv.reader(io.StringIO(content)) if row]
    except csv.Error as exc:
        raise SheilaError(f"CSV parse error: {exc}") from exc
    if not rows:
        return [], []
    headers, records = rows[0], rows[1:]
    for record in records:
        if len(record) != len(headers):
            raise SheilaError(
                f"CSV parse error: found record with {len(record)} fields, "
                f"but the previous record has {len(headers)} fields"
            )
    return headers, records


def csv_to_json(content: str) -> list[dict[str, str]]:
    """One object per CSV row, keyed by the header row, all values strings."""
    headers, records = _read_csv(content)
    return [dict(zip(headers, record)) for record in records]


def csv_to_html(content: str) -> str:
    """Render CSV as a plain HTML table."""
    headers, records = _read_csv(content)
    parts = ['<table border="1">\n<thead>\n<tr>\n']
    parts.extend(f"<th>{header}</th>\n" for header in headers)
    parts.append("</tr>\n</thead>\n<tbody>\n")
    for record in records:
        parts.append("<tr>\n")
        parts.extend(f"<td>{value}</td>\n" for value in record)
        parts.append("</tr>\n")
    parts.append("</tbody>\n</table>")
    return "".join(parts)


def html_to_text(html: str) -> str:
    """Turn block-ending tags into newlines and strip all other markup."""
    for tag in _BREAK_TAGS:
        html = html.replace(tag, "\n")
    chars = []
    in_tag = False
    for char in html:
        if char == "<":
            in_tag = True
        elif char == ">":
            in_tag = False
        elif not in_tag:
            chars.append(char)
    return "".join(chars)


def csv_as_table(content: str, failures_only: bool = False) -> str:
    """Render CSV as pipe-separated rows under a header line.

    With ``failures_only`` the third column is kept only where it reads Failed.
    """
    headers, records = _read_csv(content)
    lines = [colored(" | ".join(headers), "white"), "-" * (len(headers) * 20)]
    for record in records:
        row = [
            value
            for index, value in enumerate(record)
            if not (failures_only and index == 2 and value not in ("Failed", "failed"))
        ]
        if not failures_only or row:
            lines.append(" | ".join(row))
    return "\n".join(lines)


def _count(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise SheilaError(f"Invalid run result: '{key}' must be a non-negative integer")
    return value


def _parse_time(value: Any) -> datetime:
    if not isinstance(value, str):
        raise SheilaError("Invalid run result: 'start_time' must be a timestamp")
    text = _FRACTION.sub(r"\1", value.replace("Z", "+00:00"))
    try:
        moment = datetime.fromisoformat(text)
    except ValueError as exc:
        raise SheilaError(f"Invalid run result: bad start_time '{value}'") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _parse_duration(value: Any) -> float | None:
    if isinstance(value, Mapping) and "secs" in value:
        return float(value["secs"]) + float(value.get("nanos", 0)) / 1e9
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return None


def _parse_error(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, Mapping) and "message" in value:
        return str(value["message"])
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _parse_test(data: Any) -> _TestEntry:
    if not isinstance(data, Mapping) or not isinstance(data.get("name"), str):
        raise SheilaError("Invalid run result: test result without a name")
    status = data.get("status")
    if not isinstance(status, str):
        raise SheilaError("Invalid run result: test result without a status")
    return _TestEntry(
        name=data["name"],
        status=status.lower(),
        duration=_parse_duration(data.get("duration")),
        error=_parse_error(data.get("error")),
    )


def _parse_suite(data: Any) -> _SuiteEntry:
    if not isinstance(data, Mapping) or not isinstance(data.get("name"), str):
        raise SheilaError("Invalid run result: suite result without a name")
    tests = data.get("test_results", [])
    if not isinstance(tests, list):
        raise SheilaError("Invalid run result: 'test_results' must be a list")
    return _SuiteEntry(name=data["name"], tests=[_parse_test(test) for test in tests])


def _parse_run_result(data: Any) -> _RunSummary:
    if not isinstance(data, Mapping):
        raise SheilaError("Invalid run result: expected an object")
    suites = data.get("suite_results")
    if not isinstance(suites, list):
        raise SheilaError("Invalid run result: 'suite_results' must be a list")
    return _RunSummary(
        total=_count(data, "total_tests"),
        passed=_count(data, "passed_tests"),
        failed=_count(data, "failed_tests"),
        skipped=_count(data, "skipped_tests"),
        start_time=_parse_time(data.get("start_time")),
        suites=[_parse_suite(suite) for suite in suites],
    )


def _status_icon(status: str) -> str:
    if status == "passed":
        return colored("✓", "green")
    if status == "failed":
        return colored("✗", "red")
    if status == "ignored":
        return colored("○", "yellow")
    return colored("?", attrs=["dark"])


def render_run_result(
    run_result: Mapping[str, Any], failures_only: bool = False, verbose: bool = False
) -> str:
    """Render a run result as a coloured terminal report.

    Raises SheilaError if ``run_result`` does not have the shape of a run result.
    """
    summary = _parse_run_result(run_result)
    separator = colored("=" * 60, "magenta", attrs=["bold"])
    started = summary.start_time.strftime("%Y-%m-%d %H:%M:%S UTC")
    dim = ["dark"]
    lines = [
        "",
        separator,
        colored(f"TEST REPORT - {started}", "magenta", attrs=["bold"]),
        separator,
        "",
        f"  {colored('√', 'green')} {colored(str(summary.passed), 'green')} "
        f"{colored('passed', attrs=dim)}",
    ]
    if summary.failed > 0:
        lines.append(
            f"  {colored('✗', 'red')} {colored(str(summary.failed), 'red')} "
            f"{colored('failed', attrs=dim)}"
        )
    if summary.skipped > 0:
        lines.append(
            f"  {colored('○', 'yellow')} {colored(str(summary.skipped), 'yellow')} "
            f"{colored('ignored', attrs=dim)}"
        )
    lines.append(
        f"  {colored('∑', 'blue')} {colored(str(summary.total), 'white', attrs=['bold'])} "
        f"{colored('total', attrs=['dark', 'bold'])}"
    )

    if verbose or failures_only:
        lines.append("\n" + colored("Detailed Results:", "white"))
        for suite in summary.suites:
            if failures_only and suite.all_passed():
                continue
            lines.append(f"\n{colored('●', 'light_blue')} {colored(suite.name, 'white')}")
            for test in suite.tests:
                if failures_only and test.status != "failed":
                    continue
                lines.append(f"  {_status_icon(test.status)} {test.name}")
                if verbose and test.duration is not None:
                    duration = colored(format_duration(test.duration), attrs=dim)
                    lines.append(f"    Duration: {duration}")
                if test.status == "failed" and test.error is not None:
                    lines.append(f"    {colored(f'Error: {test.error}', 'red')}")

    lines.append("")
    if summary.failed == 0:
        lines.append(format_success("All tests passed!"))
    else:
        lines.append(format_error(f"{summary.failed} test(s) failed"))
    return "\n".join(lines)


def _summary_source(data: Any) -> Mapping[str, Any] | None:
    candidates = []
    if isinstance(data, Mapping) and "run_result" in data:
        candidates.append(data["run_result"])
    candidates.append(data)
    for candidate in candidates:
        try:
            _parse_run_result(candidate)
        except SheilaError:
            continue
        return candidate
    return None


def _display_json(content: str, output_format: OutputFormat, args: argparse.Namespace) -> str:
    try:
        data = json.loads(content)
        parsed = True
    except ValueError:
        data = None
        parsed = False
    source = _summary_source(data) if parsed else None
    if source is not None:
        return render_run_result(
            source,
            failures_only=bool(getattr(args, "failures_only", False)),
            verbose=bool(getattr(args, "verbose", False)),
        )
    if output_format is OutputFormat.JSON:
        return json.dumps(data, indent=2, ensure_ascii=False) if parsed else content
    warning = format_warning("Could not parse JSON report as TestReport or RunResult")
    return f"{warning}\n{content}"


def _display_csv(content: str, output_format: OutputFormat, args: argparse.Namespace) -> str:
    if output_format is OutputFormat.TEXT:
        return csv_as_table(content, bool(getattr(args, "failures_only", False)))
    if output_format is OutputFormat.CSV:
        return content
    if output_format is OutputFormat.JSON:
        return json.dumps(csv_to_json(content), indent=2, ensure_ascii=False)
    if output_format is OutputFormat.HTML:
        return csv_to_html(content)
    raise SheilaError(f"Unsupported report format: {output_format}")


def _display_html(content: str, output_format: OutputFormat) -> str:
    if output_format is OutputFormat.HTML:
        return content
    if output_format is OutputFormat.TEXT:
        info = format_info(
            "HTML report detected. Use --format html to display raw HTML, "
            "or open in a browser:"
        )
        location = Path.cwd() / "report.html"
        return f"{info}\n  {location}\n\nExtracted content:\n{html_to_text(content)}"
    warning = format_warning("Cannot convert HTML to the requested format")
    return f"{warning}\n{content}"


def run(args: argparse.Namespace) -> int:
    """Display the report at ``args.path``, or the newest one in the results directory."""
    report_path = getattr(args, "path", None)
    if report_path is None:
        try:
            output_dir = get_default_output_dir()
        except OSError:
            output_dir = Path(".")
        try:
            report_path = get_most_recent_report(output_dir)
        except OSError as exc:
            raise SheilaError(_NO_REPORTS) from exc
        if report_path is None:
            raise SheilaError(_NO_REPORTS)
    report_path = Path(report_path)

    if not report_path.exists():
        raise SheilaError(f"Report file not found: {report_path}")

    print(format_info(f"Reading report from: {report_path}"))
    try:
        content = report_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SheilaError(f"Failed to read report file: {report_path}") from exc

    output_format = getattr(args, "format", None) or OutputFormat.TEXT
    file_format = detect_file_format(report_path)
    if file_format is OutputFormat.JSON:
        print(_display_json(content, output_format, args))
    elif file_format is OutputFormat.CSV:
        print(_display_csv(content, output_format, args))
    elif file_format is OutputFormat.HTML:
        print(_display_html(content, output_format))
    else:
        print(content)
    return 0