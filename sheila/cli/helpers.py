"""Small helpers shared by the commands: targets, report files, ids, durations."""

from __future__ import annotations

import enum
import hashlib
import os
import uuid
from dataclasses import dataclass
from datetime import timedelta
from os import PathLike
from pathlib import Path

from sheila.errors import SheilaError

REPORT_EXTENSIONS = (".json", ".csv", ".html")

TAG_COLORS = (
    "red",
    "green",
    "yellow",
    "blue",
    "magenta",
    "cyan",
    "light_grey",
    "light_red",
    "light_green",
    "light_yellow",
    "light_blue",
    "light_magenta",
    "light_cyan",
    "white",
)


class TargetKind(enum.Enum):
    FILE = "file"
    FILE_LINE = "file_line"
    FUNCTION = "function"
    TAG = "tag"


@dataclass(frozen=True)
class TargetSpec:
    """What a test target argument refers to."""

    kind: TargetKind
    value: str
    line: int | None = None


def get_most_recent_report(directory: str | PathLike[str]) -> Path | None:
    """Return the most recently modified report file in ``directory``, if any."""
    directory = Path(directory)
    if not directory.exists():
        return None
    newest: tuple[Path, float] | None = None
    for path in directory.iterdir():
        if not path.is_file() or path.suffix not in REPORT_EXTENSIONS:
            continue
        modified = path.stat().st_mtime
        if newest is None or modified > newest[1]:
            newest = (path, modified)
    return newest[0] if newest else None


def parse_target(target: str) -> TargetSpec:
    """Classify a target as file:line, @tag, file path or function name."""
    if ":" in target:
        file_part, _, line_text = target.partition(":")
        if line_text.lstrip("+").isdigit() and line_text.count("+") <= 1 and line_text.isascii():
            return TargetSpec(TargetKind.FILE_LINE, file_part, int(line_text))
    if target.startswith("@"):
        return TargetSpec(TargetKind.TAG, target[1:])
    if "/" in target or target.endswith(".rs"):
        return TargetSpec(TargetKind.FILE, target)
    return TargetSpec(TargetKind.FUNCTION, target)


def ensure_dir_exists(directory: str | PathLike[str]) -> None:
    Path(directory).mkdir(parents=True, exist_ok=True)


def get_default_output_dir() -> Path:
    return Path(os.getcwd()) / "test-results"


def validate_test_id(test_id: str) -> uuid.UUID:
    """Parse a test process id; SheilaError if it is not a UUID."""
    try:
        return uuid.UUID(test_id)
    except (ValueError, TypeError, AttributeError):
        raise SheilaError("Invalid test ID format. Expected a UUID.") from None


def format_duration(seconds: float | timedelta) -> str:
    """Render a duration coarsely: hours, minutes, tenths of seconds or milliseconds."""
    if isinstance(seconds, timedelta):
        seconds = seconds.total_seconds()
    micros = round(seconds * 1_000_000)
    total_seconds, remainder = divmod(micros, 1_000_000)
    millis = remainder // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    secs = total_seconds % 60
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    if secs > 0:
        return f"{secs}.{millis // 100}s"
    return f"{millis}ms"


def tag_color(tag: str) -> str:
    """Pick a stable terminal colour name for a tag."""
    digest = hashlib.sha256(tag.encode("utf-8")).digest()
    return TAG_COLORS[int.from_bytes(digest[:8], "big") % len(TAG_COLORS)]