import pytest

from sheila import assertions as a
from sheila.assertions import AssertionResult
from sheila.errors import AssertionFailure


def test_passing_result_does_not_raise():
    result = AssertionResult.passing("fine")
    assert result.passed is True
    assert result.raise_for_failure() is None


def test_failing_result_raises_with_message():
    with pytest.raises(AssertionFailure) as info:
        AssertionResult.failing("plain failure").raise_for_failure()
    assert str(info.value) == "plain failure"


def test_failing_with_values_message_and_context():
    result = AssertionResult.failing_with_values("Values are not equal", 1, 2).with_context("ctx")
    assert result.expected == "1"
    assert result.actual == "2"
    assert result.diff is None
    with pytest.raises(AssertionFailure) as info:
        result.raise_for_failure()
    assert str(info.value) == "Values are not equal\nExpected: 1\nActual: 2\nContext: ctx"


def test_multiline_values_produce_diff():
    result = AssertionResult.failing_with_values("Values are not equal", "a\nb\n", "a\nc\n")
    assert result.diff is not None
    lines = result.diff.splitlines()
    assert " a" in lines
    assert "-b" in lines
    assert "+c" in lines
    with pytest.raises(AssertionFailure) as info:
        result.raise_for_failure()
    assert "\nDiff:\n" in str(info.value)


@pytest.mark.parametrize(
    "call",
    [
        lambda: a.is_true(True),
        lambda: a.is_false(False),
        lambda: a.eq(3, 3),
        lambda: a.ne(3, 4),
        lambda: a.gt(5, 4),
        lambda: a.ge(4, 4),
        lambda: a.lt(3, 4),
        lambda: a.le(4, 4),
        lambda: a.is_none(None),
        lambda: a.is_some(0),
        lambda: a.is_ok(42),
        lambda: a.is_err(ValueError("x")),
        lambda: a.contains("hello world", "lo w"),
        lambda: a.starts_with("hello", "he"),
        lambda: a.ends_with("hello", "lo"),
        lambda: a.matches("abc123", r"\d+"),
        lambda: a.is_empty([]),
        lambda: a.is_not_empty([1]),
        lambda: a.has_length([1, 2, 3], 3),
        lambda: a.contains_item([1, 2, 3], 2),
        lambda: a.approx_eq(1.0, 1.05, 0.1),
        lambda: a.that(10, lambda v: v > 5, "greater than five"),
    ],
)
def test_passing_assertions_return_none(call):
    assert call() is None


@pytest.mark.parametrize(
    "call, fragment",
    [
        (lambda: a.is_true(False), "Expected true"),
        (lambda: a.is_false(True), "Expected false"),
        (lambda: a.eq(3, 4), "Values are not equal"),
        (lambda: a.ne(3, 3), "Values should not be equal"),
        (lambda: a.gt(4, 4), "Expected value to be greater"),
        (lambda: a.ge(3, 4), "Expected value to be greater than or equal"),
        (lambda: a.lt(4, 4), "Expected value to be less"),
        (lambda: a.le(5, 4), "Expected value to be less than or equal"),
        (lambda: a.is_none(5), "Expected None"),
        (lambda: a.is_some(None), "Expected Some"),
        (lambda: a.is_ok(ValueError("bad")), "Expected Ok"),
        (lambda: a.is_err(7), "Expected Err"),
        (lambda: a.contains("hello", "xyz"), "String should contain 'xyz'"),
        (lambda: a.starts_with("hello", "lo"), "String should start with 'lo'"),
        (lambda: a.ends_with("hello", "he"), "String should end with 'he'"),
        (lambda: a.matches("abc", r"\d"), "String should match pattern"),
        (lambda: a.is_empty([1, 2]), "Collection should be empty"),
        (lambda: a.is_not_empty([]), "Collection should not be empty"),
        (lambda: a.has_length([1], 2), "Collection has wrong length"),
        (lambda: a.contains_item([1, 2], 9), "Collection should contain item"),
        (lambda: a.approx_eq(1.0, 2.0, 0.1), "Values are not approximately equal"),
        (lambda: a.that(1, lambda v: v > 5, "big"), "Custom assertion failed: big"),
    ],
)
def test_failing_assertions_raise(call, fragment):
    with pytest.raises(AssertionFailure) as info:
        call()
    assert fragment in str(info.value)
    assert "Expected:" in str(info.value)


def test_eq_reports_expected_and_actual():
    with pytest.raises(AssertionFailure) as info:
        a.eq("left", "right")
    message = str(info.value)
    assert "Expected: left" in message
    assert "Actual: right" in message


def test_empty_collection_reports_size():
    with pytest.raises(AssertionFailure) as info:
        a.is_empty([1, 2, 3])
    assert "collection with 3 items" in str(info.value)


def test_invalid_regex_raises_assertion_failure():
    with pytest.raises(AssertionFailure) as info:
        a.matches("abc", "(")
    assert "Invalid regex pattern '('" in str(info.value)