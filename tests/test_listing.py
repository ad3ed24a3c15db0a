import argparse
import json
import re

import pytest

from sheila.cli.args import OutputFormat
from sheila.cli.listing import run
from sheila.errors import SheilaError

SOURCE = """use sheila;

#[sheila::suite]
pub struct MathSuite;

#[sheila::test(tags = "fast")]
fn adds_numbers() {}
"""

ANSI = re.compile(r"\x1b\[[0-9;]*m")


def make_args(path, fmt=OutputFormat.TEXT):
    return argparse.Namespace(path=path, format=fmt, tags=[], verbose=False)


@pytest.fixture
def project(tmp_path):
    (tmp_path / "math.rs").write_text(SOURCE)
    return tmp_path


def test_json_listing(project, capsys):
    assert run(make_args(project, OutputFormat.JSON)) == 0
    data = json.loads(capsys.readouterr().out)
    names = [suite["name"] for suite in data[0]["suites"]]
    assert names == ["MathSuite", "Standalone Tests"]
    assert data[0]["suites"][1]["tests"][0]["name"] == "adds_numbers"


def test_text_listing_from_current_directory(project, capsys, monkeypatch):
    monkeypatch.chdir(project)
    run(make_args(None))
    out = ANSI.sub("", capsys.readouterr().out)
    assert "math.rs" in out
    assert "adds_numbers" in out
    assert "No tests in this suite" in out


def test_empty_directory(tmp_path, capsys):
    run(make_args(tmp_path))
    assert capsys.readouterr().out.strip() == "No test files found."


def test_unsupported_format(project):
    with pytest.raises(SheilaError, match="Failed to format test files"):
        run(make_args(project, OutputFormat.TAP))