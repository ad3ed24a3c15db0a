"""Finding test suites and test functions in source files."""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace
from os import PathLike
from pathlib import Path, PurePath

from sheila.errors import SheilaError

TEST_FUNCTION_PATTERN = r"#\[sheila::test(?:\([^\)]*\))?\]\s*\n\s*(?:pub\s+)?fn\s+(\w+)"
SUITE_PATTERN = r"#\[sheila::suite(?:\([^\)]*\))?\]\s*\n\s*(?:pub\s+)?struct\s+(\w+)"
STANDALONE_SUITE = "Standalone Tests"
LINE_TOLERANCE = 5

_UINT = re.compile(r"\+?[0-9]+")


@dataclass
class DiscoveredTest:
    name: str
    tags: list[str] = field(default_factory=list)
    line_number: int | None = None
    ignored: bool = False
    timeout: int | None = None
    retries: int | None = None


@dataclass
class DiscoveredSuite:
    name: str
    tests: list[DiscoveredTest] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    line_number: int | None = None


@dataclass
class DiscoveredFile:
    path: Path
    suites: list[DiscoveredSuite] = field(default_factory=list)


def _line_number(content: str, position: int) -> int:
    prefix = content[:position]
    partial = 1 if prefix and not prefix.endswith("\n") else 0
    return prefix.count("\n") + partial


def _parse_uint(text: str | None, bits: int) -> int | None:
    if text is None or not _UINT.fullmatch(text):
        return None
    value = int(text)
    return value if value < 2**bits else None


def _parse_attributes(macro_text: str) -> dict[str, str]:
    start = macro_text.find("(")
    end = macro_text.rfind(")")
    if start < 0 or end < 0:
        return {}
    attributes: dict[str, str] = {}
    for attr in macro_text[start + 1 : end].split(","):
        attr = attr.strip()
        if "=" in attr:
            key, _, value = attr.partition("=")
            attributes[key.strip()] = value.strip().strip('"')
        else:
            attributes[attr] = "true"
    return attributes


def _path_matches(path: Path, part: str) -> bool:
    if part in str(path):
        return True
    wanted = PurePath(part).parts
    return not wanted or path.parts[-len(wanted) :] == wanted


def _retain(file: DiscoveredFile, keep: Callable[[DiscoveredTest], bool]) -> DiscoveredFile:
    suites = [replace(suite, tests=[t for t in suite.tests if keep(t)]) for suite in file.suites]
    return replace(file, suites=suites)


class Discoverer:
    """Scans source files for annotated suites and tests."""

    def __init__(self) -> None:
        self._test_pattern = re.compile(TEST_FUNCTION_PATTERN)
        self._suite_pattern = re.compile(SUITE_PATTERN)

    def discover(self, path: str | PathLike[str]) -> list[DiscoveredFile]:
        """Discover tests in one file or, recursively, in a directory."""
        path = Path(path)
        if path.is_file():
            return [self._parse_file(path)] if self._is_source_file(path) else []
        if path.is_dir():
            return self._discover_in_directory(path)
        return []

    def discover_current(self) -> list[DiscoveredFile]:
        return self._discover_in_directory(Path.cwd())

    @staticmethod
    def _is_source_file(path: Path) -> bool:
        return path.suffix == ".rs"

    def _discover_in_directory(self, directory: Path) -> list[DiscoveredFile]:
        found = []
        for root, dirs, files in os.walk(directory, followlinks=True):
            dirs.sort()
            for name in sorted(files):
                path = Path(root) / name
                if not self._is_source_file(path):
                    continue
                try:
                    parsed = self._parse_file(path)
                except (OSError, UnicodeDecodeError):
                    continue
                if parsed.suites:
                    found.append(parsed)
        return found

    def _parse_file(self, path: Path) -> DiscoveredFile:
        content = path.read_text(encoding="utf-8")
        return DiscoveredFile(path=path, suites=self._parse_suites(content))

    def _parse_suites(self, content: str) -> list[DiscoveredSuite]:
        suites = [
            DiscoveredSuite(
                name=match.group(1), line_number=_line_number(content, match.start())
            )
            for match in self._suite_pattern.finditer(content)
        ]
        standalone = self._parse_tests(content)
        if standalone:
            suites.append(DiscoveredSuite(name=STANDALONE_SUITE, tests=standalone))
        return suites

    def _parse_tests(self, content: str) -> list[DiscoveredTest]:
        tests = []
        for match in self._test_pattern.finditer(content):
            attributes = _parse_attributes(match.group(0))
            tags = attributes.get("tags")
            tests.append(
                DiscoveredTest(
                    name=match.group(1),
                    tags=[tag.strip() for tag in tags.split(",")] if tags is not None else [],
                    line_number=_line_number(content, match.start()),
                    ignored="ignore" in attributes,
                    timeout=_parse_uint(attributes.get("timeout"), 64),
                    retries=_parse_uint(attributes.get("retries"), 32),
                )
            )
        return tests

    def filter_tests(
        self,
        test_files: Iterable[DiscoveredFile],
        target: str | None = None,
        tags: Sequence[str] = (),
        grep: str | None = None,
    ) -> list[DiscoveredFile]:
        """Keep the tests selected by target, tags and grep; drop files left empty.

        Raises SheilaError if ``grep`` is not a valid regular expression.
        """
        grep_regex = None
        if grep is not None:
            try:
                grep_regex = re.compile(grep)
            except re.error as exc:
                raise SheilaError(f"Invalid grep expression '{grep}': {exc}") from exc

        wanted_tags = list(tags)
        filtered = []
        for test_file in test_files:
            if target is not None:
                test_file = self._filter_by_target(test_file, target)
            if wanted_tags:
                test_file = _retain(
                    test_file, lambda t: any(tag in t.tags for tag in wanted_tags)
                )
            if grep_regex is not None:
                regex = grep_regex
                test_file = _retain(
                    test_file,
                    lambda t: regex.search(t.name) is not None
                    or any(regex.search(tag) is not None for tag in t.tags),
                )
            if any(suite.tests for suite in test_file.suites):
                filtered.append(test_file)
        return filtered

    @staticmethod
    def _filter_by_target(test_file: DiscoveredFile, target: str) -> DiscoveredFile:
        if ":" in target:
            parts = target.split(":")
            if len(parts) != 2:
                return test_file
            file_part, line_text = parts
            line = _parse_uint(line_text, 64)
            if line is None:
                return test_file
            if not _path_matches(test_file.path, file_part):
                return _retain(test_file, lambda t: False)
            return _retain(
                test_file,
                lambda t: t.line_number is not None
                and abs(t.line_number - line) <= LINE_TOLERANCE,
            )
        if target.endswith(".rs") or "/" in target:
            if _path_matches(test_file.path, target):
                return test_file
            return _retain(test_file, lambda t: False)
        return _retain(
            test_file, lambda t: target in t.name or any(target in tag for tag in t.tags)
        )