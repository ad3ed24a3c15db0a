"""Lifecycle hooks run around suites and tests."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sheila.errors import HookError

HookFunction = Callable[[Any], Any]


class HookType(enum.Enum):
    """Stage of the execution lifecycle a hook belongs to."""

    BEFORE_ALL = "before_all"
    AFTER_ALL = "after_all"
    BEFORE_EACH = "before_each"
    AFTER_EACH = "after_each"
    BEFORE_SETUP = "before_setup"
    AFTER_TEARDOWN = "after_teardown"

    def __str__(self) -> str:
        return self.value


@dataclass
class Hook:
    """A named function run at one stage of the lifecycle."""

    hook_type: HookType
    name: str
    function: HookFunction
    required: bool = True

    def execute(self, context: Any) -> None:
        self.function(context)


@dataclass
class Hooks:
    """All hooks registered for a suite, grouped by stage."""

    before_all_hooks: list[Hook] = field(default_factory=list)
    after_all_hooks: list[Hook] = field(default_factory=list)
    before_each_hooks: list[Hook] = field(default_factory=list)
    after_each_hooks: list[Hook] = field(default_factory=list)
    before_setup_hooks: list[Hook] = field(default_factory=list)
    after_teardown_hooks: list[Hook] = field(default_factory=list)

    def _bucket(self, hook_type: HookType) -> list[Hook]:
        return {
            HookType.BEFORE_ALL: self.before_all_hooks,
            HookType.AFTER_ALL: self.after_all_hooks,
            HookType.BEFORE_EACH: self.before_each_hooks,
            HookType.AFTER_EACH: self.after_each_hooks,
            HookType.BEFORE_SETUP: self.before_setup_hooks,
            HookType.AFTER_TEARDOWN: self.after_teardown_hooks,
        }[hook_type]

    def _add(self, hook_type: HookType, name: str, function: HookFunction) -> Hooks:
        self._bucket(hook_type).append(Hook(hook_type, name, function))
        return self

    def before_all(self, name: str, function: HookFunction) -> Hooks:
        return self._add(HookType.BEFORE_ALL, name, function)

    def after_all(self, name: str, function: HookFunction) -> Hooks:
        return self._add(HookType.AFTER_ALL, name, function)

    def before_each(self, name: str, function: HookFunction) -> Hooks:
        return self._add(HookType.BEFORE_EACH, name, function)

    def after_each(self, name: str, function: HookFunction) -> Hooks:
        return self._add(HookType.AFTER_EACH, name, function)

    def execute(self, hook_type: HookType, context: Any) -> None:
        """Run every hook of ``hook_type`` in order, stopping at the first failure."""
        for hook in self._bucket(hook_type):
            try:
                hook.execute(context)
            except Exception as exc:
                raise HookError(
                    str(hook_type), f"Hook '{hook.name}' failed: {exc}"
                ) from exc

    def get_hooks(self, hook_type: HookType) -> tuple[Hook, ...]:
        return tuple(self._bucket(hook_type))

    def has_hooks(self, hook_type: HookType) -> bool:
        return bool(self._bucket(hook_type))

    def total_hooks(self) -> int:
        return sum(len(self._bucket(hook_type)) for hook_type in HookType)