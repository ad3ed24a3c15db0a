"""Assertion helpers that raise AssertionFailure with detailed messages."""

from __future__ import annotations

import difflib
import re
from collections.abc import Callable, Sized
from dataclasses import dataclass, field
from typing import Any

from sheila.errors import AssertionFailure


def _create_diff(expected: str, actual: str) -> str:
    old = expected.splitlines(keepends=True)
    new = actual.splitlines(keepends=True)
    matcher = difflib.SequenceMatcher(a=old, b=new, autojunk=False)
    parts: list[str] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            parts.extend(" " + line for line in old[i1:i2])
            continue
        parts.extend("-" + line for line in old[i1:i2])
        parts.extend("+" + line for line in new[j1:j2])
    return "".join(parts)


@dataclass
class AssertionResult:
    """Outcome of one assertion, with optional expected/actual values."""

    passed: bool
    message: str
    expected: str | None = None
    actual: str | None = None
    context: list[str] = field(default_factory=list)
    diff: str | None = None

    @classmethod
    def passing(cls, message: str) -> AssertionResult:
        return cls(passed=True, message=message)

    @classmethod
    def failing(cls, message: str) -> AssertionResult:
        return cls(passed=False, message=message)

    @classmethod
    def failing_with_values(cls, message: str, expected: Any, actual: Any) -> AssertionResult:
        expected_str = str(expected)
        actual_str = str(actual)
        diff = None
        if "\n" in expected_str or "\n" in actual_str:
            diff = _create_diff(expected_str, actual_str)
        return cls(
            passed=False,
            message=message,
            expected=expected_str,
            actual=actual_str,
            diff=diff,
        )

    def with_context(self, context: str) -> AssertionResult:
        self.context.append(str(context))
        return self

    def raise_for_failure(self) -> None:
        """Raise AssertionFailure if the assertion did not pass."""
        if self.passed:
            return
        message = self.message
        if self.expected is not None and self.actual is not None:
            message += f"\nExpected: {self.expected}\nActual: {self.actual}"
        if self.diff is not None:
            message += f"\nDiff:\n{self.diff}"
        for context in self.context:
            message += f"\nContext: {context}"
        raise AssertionFailure(message)


def _check(ok: bool, pass_message: str, fail: Callable[[], AssertionResult]) -> None:
    result = AssertionResult.passing(pass_message) if ok else fail()
    result.raise_for_failure()


def is_true(value: bool) -> None:
    _check(
        bool(value),
        "Value is true",
        lambda: AssertionResult.failing_with_values("Expected true", True, value),
    )


def is_false(value: bool) -> None:
    _check(
        not value,
        "Value is false",
        lambda: AssertionResult.failing_with_values("Expected false", False, value),
    )


def eq(expected: Any, actual: Any) -> None:
    _check(
        expected == actual,
        "Values are equal",
        lambda: AssertionResult.failing_with_values("Values are not equal", expected, actual),
    )


def ne(expected: Any, actual: Any) -> None:
    _check(
        expected != actual,
        "Values are not equal",
        lambda: AssertionResult.failing_with_values(
            "Values should not be equal", expected, actual
        ),
    )


def gt(actual: Any, expected: Any) -> None:
    _check(
        actual > expected,
        "Value is greater than expected",
        lambda: AssertionResult.failing_with_values(
            "Expected value to be greater", f">{expected}", actual
        ),
    )


def ge(actual: Any, expected: Any) -> None:
    _check(
        actual >= expected,
        "Value is greater than or equal to expected",
        lambda: AssertionResult.failing_with_values(
            "Expected value to be greater than or equal", f">={expected}", actual
        ),
    )


def lt(actual: Any, expected: Any) -> None:
    _check(
        actual < expected,
        "Value is less than expected",
        lambda: AssertionResult.failing_with_values(
            "Expected value to be less", f"<{expected}", actual
        ),
    )


def le(actual: Any, expected: Any) -> None:
    _check(
        actual <= expected,
        "Value is less than or equal to expected",
        lambda: AssertionResult.failing_with_values(
            "Expected value to be less than or equal", f"<={expected}", actual
        ),
    )


def is_none(value: Any) -> None:
    _check(
        value is None,
        "Value is None",
        lambda: AssertionResult.failing_with_values("Expected None", "None", f"Some({value!r})"),
    )


def is_some(value: Any) -> None:
    _check(
        value is not None,
        "Value is Some",
        lambda: AssertionResult.failing_with_values("Expected Some", "Some(_)", "None"),
    )


def is_ok(outcome: Any) -> None:
    """Pass unless ``outcome`` is an exception instance."""
    _check(
        not isinstance(outcome, BaseException),
        "Result is Ok",
        lambda: AssertionResult.failing_with_values("Expected Ok", "Ok(_)", f"Err({outcome!r})"),
    )


def is_err(outcome: Any) -> None:
    """Pass only if ``outcome`` is an exception instance."""
    _check(
        isinstance(outcome, BaseException),
        "Result is Err",
        lambda: AssertionResult.failing_with_values("Expected Err", "Err(_)", f"Ok({outcome!r})"),
    )


def contains(haystack: str, needle: str) -> None:
    _check(
        needle in haystack,
        f"String contains '{needle}'",
        lambda: AssertionResult.failing_with_values(
            f"String should contain '{needle}'", f"string containing '{needle}'", haystack
        ),
    )


def starts_with(haystack: str, prefix: str) -> None:
    _check(
        haystack.startswith(prefix),
        f"String starts with '{prefix}'",
        lambda: AssertionResult.failing_with_values(
            f"String should start with '{prefix}'", f"string starting with '{prefix}'", haystack
        ),
    )


def ends_with(haystack: str, suffix: str) -> None:
    _check(
        haystack.endswith(suffix),
        f"String ends with '{suffix}'",
        lambda: AssertionResult.failing_with_values(
            f"String should end with '{suffix}'", f"string ending with '{suffix}'", haystack
        ),
    )


def matches(haystack: str, pattern: str) -> None:
    try:
        regex = re.compile(pattern)
    except re.error as exc:
        raise AssertionFailure(f"Invalid regex pattern '{pattern}': {exc}") from exc
    _check(
        regex.search(haystack) is not None,
        f"String matches pattern '{pattern}'",
        lambda: AssertionResult.failing_with_values(
            f"String should match pattern '{pattern}'", f"string matching '{pattern}'", haystack
        ),
    )


def is_empty(collection: Sized) -> None:
    _check(
        len(collection) == 0,
        "Collection is empty",
        lambda: AssertionResult.failing_with_values(
            "Collection should be empty",
            "empty collection",
            f"collection with {len(collection)} items",
        ),
    )


def is_not_empty(collection: Sized) -> None:
    _check(
        len(collection) != 0,
        "Collection is not empty",
        lambda: AssertionResult.failing_with_values(
            "Collection should not be empty", "non-empty collection", "empty collection"
        ),
    )


def has_length(collection: Sized, expected_length: int) -> None:
    actual_length = len(collection)
    _check(
        actual_length == expected_length,
        f"Collection has length {expected_length}",
        lambda: AssertionResult.failing_with_values(
            "Collection has wrong length", expected_length, actual_length
        ),
    )


def contains_item(collection: Any, item: Any) -> None:
    _check(
        item in collection,
        f"Collection contains {item!r}",
        lambda: AssertionResult.failing_with_values(
            "Collection should contain item",
            f"collection containing {item!r}",
            f"collection: {list(collection)!r}",
        ),
    )


def approx_eq(actual: float, expected: float, epsilon: float) -> None:
    diff = abs(actual - expected)
    _check(
        diff <= epsilon,
        "Values are approximately equal",
        lambda: AssertionResult.failing_with_values(
            f"Values are not approximately equal (diff: {diff}, epsilon: {epsilon})",
            expected,
            actual,
        ),
    )


def that(value: Any, predicate: Callable[[Any], bool], message: str) -> None:
    _check(
        bool(predicate(value)),
        f"Custom assertion passed: {message}",
        lambda: AssertionResult.failing_with_values(
            f"Custom assertion failed: {message}", message, repr(value)
        ),
    )