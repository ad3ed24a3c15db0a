import pytest

from sheila.cli.discovery import Discoverer
from sheila.errors import SheilaError

SAMPLE = """use sheila::prelude::*;

#[sheila::suite]
pub struct MathSuite;

#[sheila::test(tags = "fast", timeout = 5, retries = 2)]
fn adds() {}

#[sheila::test(ignore)]
pub fn skipped() {}
"""


@pytest.fixture
def sample(tmp_path):
    path = tmp_path / "math_tests.rs"
    path.write_text(SAMPLE)
    return path


def _tests(files):
    return {t.name: t for f in files for s in f.suites for t in s.tests}


def test_discover_single_file(sample):
    files = Discoverer().discover(sample)
    assert len(files) == 1
    names = [suite.name for suite in files[0].suites]
    assert names == ["MathSuite", "Standalone Tests"]
    assert files[0].suites[0].tests == []
    tests = _tests(files)
    assert list(tests) == ["adds", "skipped"]


def test_attributes_are_parsed(sample):
    tests = _tests(Discoverer().discover(sample))
    adds = tests["adds"]
    assert adds.tags == ["fast"]
    assert adds.timeout == 5
    assert adds.retries == 2
    assert adds.ignored is False
    assert tests["skipped"].ignored is True
    assert tests["skipped"].timeout is None


def test_line_numbers_point_at_attributes(sample):
    files = Discoverer().discover(sample)
    lines = SAMPLE.split("\n")
    suite = files[0].suites[0]
    assert lines[suite.line_number].startswith("#[sheila::suite")
    for test in _tests(files).values():
        assert lines[test.line_number].startswith("#[sheila::test")


def test_non_source_file_and_missing_path(tmp_path):
    other = tmp_path / "notes.txt"
    other.write_text(SAMPLE)
    assert Discoverer().discover(other) == []
    assert Discoverer().discover(tmp_path / "missing") == []


def test_directory_skips_files_without_tests(tmp_path, sample):
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "more.rs").write_text("#[sheila::test]\nfn deep() {}\n")
    (tmp_path / "plain.rs").write_text("fn main() {}\n")
    files = Discoverer().discover(tmp_path)
    paths = {f.path.name for f in files}
    assert paths == {"math_tests.rs", "more.rs"}


def test_discover_current(tmp_path, sample, monkeypatch):
    monkeypatch.chdir(tmp_path)
    files = Discoverer().discover_current()
    assert [f.path.name for f in files] == ["math_tests.rs"]


def test_filter_by_name(sample):
    discoverer = Discoverer()
    files = discoverer.filter_tests(discoverer.discover(sample), target="add")
    assert list(_tests(files)) == ["adds"]


def test_filter_by_tags(sample):
    discoverer = Discoverer()
    files = discoverer.filter_tests(discoverer.discover(sample), tags=["fast"])
    assert list(_tests(files)) == ["adds"]
    assert discoverer.filter_tests(discoverer.discover(sample), tags=["slow"]) == []


def test_filter_by_grep(sample):
    discoverer = Discoverer()
    files = discoverer.filter_tests(discoverer.discover(sample), grep="^skip")
    assert list(_tests(files)) == ["skipped"]


def test_invalid_grep_raises(sample):
    discoverer = Discoverer()
    with pytest.raises(SheilaError):
        discoverer.filter_tests(discoverer.discover(sample), grep="(")


def test_filter_by_file_target(sample):
    discoverer = Discoverer()
    found = discoverer.discover(sample)
    kept = discoverer.filter_tests(found, target="math_tests.rs")
    assert set(_tests(kept)) == {"adds", "skipped"}
    assert discoverer.filter_tests(found, target="other.rs") == []


def test_filter_by_file_and_line(sample):
    discoverer = Discoverer()
    found = discoverer.discover(sample)
    line = _tests(found)["adds"].line_number
    kept = discoverer.filter_tests(found, target=f"math_tests.rs:{line}")
    assert "adds" in _tests(kept)
    assert discoverer.filter_tests(found, target=f"math_tests.rs:{line + 100}") == []
    assert discoverer.filter_tests(found, target=f"other.rs:{line}") == []


def test_filter_does_not_mutate_input(sample):
    discoverer = Discoverer()
    found = discoverer.discover(sample)
    discoverer.filter_tests(found, target="nothing_matches")
    assert set(_tests(found)) == {"adds", "skipped"}