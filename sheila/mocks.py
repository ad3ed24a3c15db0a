"""Recording mocks with expected call counts, scripted returns and validators."""

from __future__ import annotations

import json
import threading
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sheila.errors import MockError

Validator = Callable[[list[Any]], Any]


def _to_json_value(value: Any) -> Any:
    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError) as exc:
        raise MockError(f"Value is not JSON-serialisable: {exc}") from exc


@dataclass(frozen=True)
class MockCall:
    """One recorded call of a mocked function."""

    fn_name: str
    args: list[Any]
    ts: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class MockConfig:
    """How a mocked function behaves when called."""

    expected_calls: int | None = None
    return_values: list[Any] = field(default_factory=list)
    panic_on_unexpected: bool = False
    validator: Validator | None = None


class MockCollection:
    """Mock configurations together with the calls recorded against them."""

    def __init__(self) -> None:
        self._configs: dict[str, MockConfig] = {}
        self._calls: list[MockCall] = []
        self._counts: Counter[str] = Counter()
        self._lock = threading.Lock()

    def register_mock(self, function_name: str, config: MockConfig) -> None:
        self._configs[str(function_name)] = config

    def record_call(self, function_name: str, arguments: Iterable[Any]) -> Any:
        """Record a call and return the configured value for it.

        The n-th call returns the n-th configured value; once those run out
        the last one is repeated, and with none configured the result is None.
        Raises MockError when more calls than expected are made, or
        RuntimeError instead if the mock is set to panic on unexpected calls.
        """
        function_name = str(function_name)
        args = list(arguments)
        with self._lock:
            self._calls.append(MockCall(function_name, list(args)))
            self._counts[function_name] += 1
            count = self._counts[function_name]

        config = self._configs.get(function_name)
        if config is None:
            return None

        if config.validator is not None:
            config.validator(args)

        if config.expected_calls is not None and count > config.expected_calls:
            message = (
                f"Unexpected call to '{function_name}': "
                f"expected {config.expected_calls} calls, got {count}"
            )
            if config.panic_on_unexpected:
                raise RuntimeError(message)
            raise MockError(message)

        if not config.return_values:
            return None
        index = min(count - 1, len(config.return_values) - 1)
        return config.return_values[index]

    def get_call_count(self, function_name: str) -> int:
        with self._lock:
            return self._counts.get(function_name, 0)

    def get_calls(self, function_name: str) -> list[MockCall]:
        with self._lock:
            return [call for call in self._calls if call.fn_name == function_name]

    def get_all_calls(self) -> list[MockCall]:
        with self._lock:
            return list(self._calls)

    def clear(self) -> None:
        """Forget every recorded call; configurations are kept."""
        with self._lock:
            self._calls.clear()
            self._counts.clear()

    def verify(self) -> None:
        """Raise MockError if any mock was not called exactly as often as expected."""
        for function_name, config in self._configs.items():
            if config.expected_calls is None:
                continue
            actual = self.get_call_count(function_name)
            if actual != config.expected_calls:
                raise MockError(
                    f"Mock verification failed for '{function_name}': "
                    f"expected {config.expected_calls} calls, got {actual}"
                )


class MockBuilder:
    """Fluent builder for MockConfig."""

    def __init__(self) -> None:
        self._config = MockConfig()

    def expect_calls(self, count: int) -> MockBuilder:
        self._config.expected_calls = count
        return self

    def returns(self, value: Any) -> MockBuilder:
        self._config.return_values.append(_to_json_value(value))
        return self

    def returns_sequence(self, values: Iterable[Any]) -> MockBuilder:
        self._config.return_values.extend(_to_json_value(value) for value in values)
        return self

    def panic_on_unexpected(self, flag: bool) -> MockBuilder:
        self._config.panic_on_unexpected = flag
        return self

    def with_validator(self, validator: Validator) -> MockBuilder:
        self._config.validator = validator
        return self

    def build(self) -> MockConfig:
        return self._config


_GLOBAL_MOCKS = MockCollection()
_GLOBAL_LOCK = threading.Lock()


def global_mocks() -> MockCollection:
    """Return the process-wide mock collection."""
    return _GLOBAL_MOCKS


def set_global_mock(function_name: str, config: MockConfig) -> None:
    with _GLOBAL_LOCK:
        _GLOBAL_MOCKS.register_mock(function_name, config)


def record_mock_call_global(function_name: str, arguments: Iterable[Any]) -> Any:
    with _GLOBAL_LOCK:
        return _GLOBAL_MOCKS.record_call(function_name, arguments)


def call_count_global(function_name: str) -> int:
    with _GLOBAL_LOCK:
        return _GLOBAL_MOCKS.get_call_count(function_name)


def verify_mocks_global() -> None:
    with _GLOBAL_LOCK:
        _GLOBAL_MOCKS.verify()


def clear_mocks_global() -> None:
    with _GLOBAL_LOCK:
        _GLOBAL_MOCKS.clear()