import os
import uuid
from datetime import timedelta
from pathlib import Path

import pytest

from sheila.cli.helpers import (
    TAG_COLORS,
    TargetKind,
    TargetSpec,
    ensure_dir_exists,
    format_duration,
    get_default_output_dir,
    get_most_recent_report,
    parse_target,
    tag_color,
    validate_test_id,
)
from sheila.errors import SheilaError


def test_parse_target_file_line():
    assert parse_target("tests/math.rs:42") == TargetSpec(
        TargetKind.FILE_LINE, "tests/math.rs", 42
    )


def test_parse_target_colon_without_number_falls_through():
    assert parse_target("suite:name").kind is TargetKind.FUNCTION
    assert parse_target("dir/a.rs:x").kind is TargetKind.FILE


def test_parse_target_tag_file_function():
    assert parse_target("@fast") == TargetSpec(TargetKind.TAG, "fast")
    assert parse_target("math.rs") == TargetSpec(TargetKind.FILE, "math.rs")
    assert parse_target("tests/unit") == TargetSpec(TargetKind.FILE, "tests/unit")
    assert parse_target("adds") == TargetSpec(TargetKind.FUNCTION, "adds")


def test_most_recent_report(tmp_path):
    older = tmp_path / "a.json"
    newer = tmp_path / "b.csv"
    ignored = tmp_path / "c.txt"
    for index, path in enumerate((older, newer, ignored)):
        path.write_text("x")
        os.utime(path, (1000 + index * 100, 1000 + index * 100))
    assert get_most_recent_report(tmp_path) == newer


def test_most_recent_report_none(tmp_path):
    assert get_most_recent_report(tmp_path) is None
    assert get_most_recent_report(tmp_path / "missing") is None


def test_ensure_dir_exists(tmp_path):
    target = tmp_path / "a" / "b"
    ensure_dir_exists(target)
    ensure_dir_exists(target)
    assert target.is_dir()


def test_default_output_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert get_default_output_dir() == Path(os.getcwd()) / "test-results"


def test_validate_test_id_round_trip():
    value = uuid.uuid4()
    assert validate_test_id(str(value)) == value


def test_validate_test_id_rejects_garbage():
    with pytest.raises(SheilaError, match="Expected a UUID"):
        validate_test_id("not-a-uuid")


def test_format_duration_values():
    assert format_duration(1.5) == "1.5s"
    assert format_duration(125) == "2m 5s"
    assert format_duration(3661) == "1h 1m 1s"


def test_format_duration_sub_second_is_milliseconds():
    assert format_duration(0.25).endswith("ms")
    assert format_duration(0.25)[:-2].isdigit()


def test_format_duration_accepts_timedelta():
    for value in (0.0, 0.5, 42.3, 700, 9000):
        assert format_duration(timedelta(seconds=value)) == format_duration(value)


def test_tag_color_is_stable_and_in_palette():
    for tag in ("@fast", "@slow", "@db", ""):
        color = tag_color(tag)
        assert color in TAG_COLORS
        assert tag_color(tag) == color
    assert len({tag_color(f"@tag{i}") for i in range(200)}) > 1