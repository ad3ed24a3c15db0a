import re
import tempfile

import pytest

from sheila.cli.main import main

_ANSI = re.compile(r"\x1b\[[0-9;]*m")


def _plain(text):
    return _ANSI.sub("", text)


@pytest.fixture
def env(tmp_path, monkeypatch):
    home = tmp_path / "home"
    work = tmp_path / "work"
    temp = tmp_path / "tmp"
    for directory in (home, work, temp):
        directory.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    monkeypatch.setattr(tempfile, "tempdir", str(temp))
    return work


def test_list_command(env, capsys):
    source = env / "math_test.rs"
    source.write_text("#[sheila::test]\nfn adds_numbers() {}\n")
    assert main(["list", str(env)]) == 0
    assert "adds_numbers" in _plain(capsys.readouterr().out)


def test_report_command_prints_csv(env, capsys):
    report = env / "report.csv"
    report.write_text("name,status\na,Passed\n")
    assert main(["report", str(report), "--format", "csv"]) == 0
    assert "name,status\na,Passed" in capsys.readouterr().out


def test_report_command_missing_file_fails(env, capsys):
    assert main(["report", str(env / "absent.json")]) == 1
    assert "Report file not found" in _plain(capsys.readouterr().err)


def test_stop_with_invalid_id(env, capsys):
    assert main(["stop", "nope"]) == 1
    assert "Invalid test ID format. Expected a UUID." in _plain(capsys.readouterr().err)


def test_headless_test_run(env, capsys):
    assert main(["test", "--headless"]) == 0
    assert "Headless mode not implemented" in _plain(capsys.readouterr().out)


def test_test_run_without_runner_fails(env, capsys):
    assert main(["test"]) == 1
    assert "No test runner is available" in _plain(capsys.readouterr().err)


def test_clear_cache_command(env, capsys):
    assert main(["clear-cache"]) == 0
    assert "Cache clearing completed" in _plain(capsys.readouterr().out)


def test_missing_command_exits():
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 2