"""Error types raised by the test framework."""

from __future__ import annotations

import enum
from os import PathLike
from pathlib import Path


class ErrorKind(enum.Enum):
    """Broad category of a framework error."""

    GENERIC = "generic"
    ASSERTION = "assertion"
    FIXTURE = "fixture"
    HOOK = "hook"
    MOCK = "mock"
    TEST_SETUP = "test_setup"


class SheilaError(Exception):
    """Base class of every error the framework raises."""

    kind: ErrorKind = ErrorKind.GENERIC

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class AssertionFailure(SheilaError):
    """An assertion did not hold."""

    kind = ErrorKind.ASSERTION


class FixtureError(SheilaError):
    """A fixture could not be set up, resolved or torn down."""

    kind = ErrorKind.FIXTURE


class HookError(SheilaError):
    """A lifecycle hook failed."""

    kind = ErrorKind.HOOK

    def __init__(self, hook_type: str, message: str) -> None:
        super().__init__(message)
        self.hook_type = hook_type


class MockError(SheilaError):
    """A mock was called or verified in a way its configuration forbids."""

    kind = ErrorKind.MOCK


class SetupError(SheilaError):
    """A test could not be prepared, for instance a missing parameter."""

    kind = ErrorKind.TEST_SETUP


def format_relative_path(path: str | PathLike[str]) -> str:
    """Return ``path`` relative to the current directory.

    Raises ValueError when the path is not inside the current directory.
    """
    return str(Path(path).relative_to(Path.cwd()))