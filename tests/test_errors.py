from pathlib import Path

import pytest

from sheila.errors import (
    AssertionFailure,
    ErrorKind,
    FixtureError,
    HookError,
    MockError,
    SetupError,
    SheilaError,
    format_relative_path,
)
from sheila.fixtures import FixtureManager


@pytest.mark.parametrize(
    "cls, kind",
    [
        (SheilaError, ErrorKind.GENERIC),
        (AssertionFailure, ErrorKind.ASSERTION),
        (FixtureError, ErrorKind.FIXTURE),
        (MockError, ErrorKind.MOCK),
        (SetupError, ErrorKind.TEST_SETUP),
    ],
)
def test_error_kinds(cls, kind):
    err = cls("something went wrong")
    assert err.kind is kind
    assert str(err) == "something went wrong"
    assert isinstance(err, SheilaError)


def test_hook_error_carries_hook_type():
    err = HookError("before_all", "Hook 'x' failed: boom")
    assert err.hook_type == "before_all"
    assert err.kind is ErrorKind.HOOK
    assert str(err) == "Hook 'x' failed: boom"


def test_errors_can_be_caught_as_base():
    with pytest.raises(SheilaError) as info:
        FixtureManager().setup_fixture("db", None)
    assert info.value.message == "Fixture 'db' not found"
    assert info.value.kind is ErrorKind.FIXTURE


def test_format_relative_path_inside_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "tests" / "sample.rs"
    assert format_relative_path(target) == str(Path("tests") / "sample.rs")


def test_format_relative_path_accepts_string(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert format_relative_path(str(tmp_path / "a.rs")) == "a.rs"


def test_format_relative_path_outside_cwd(tmp_path, monkeypatch):
    inner = tmp_path / "inner"
    inner.mkdir()
    monkeypatch.chdir(inner)
    with pytest.raises(ValueError):
        format_relative_path(tmp_path / "other.rs")