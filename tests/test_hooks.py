import pytest

from sheila.errors import HookError
from sheila.hooks import Hook, Hooks, HookType


def test_hook_type_display():
    def boom(ctx):
        raise ValueError("x")

    hooks = Hooks().before_all("a", boom)
    with pytest.raises(HookError) as info:
        hooks.execute(HookType.BEFORE_ALL, None)
    assert info.value.hook_type == "before_all"
    assert str(HookType.BEFORE_ALL) == "before_all"
    assert str(HookType.AFTER_TEARDOWN) == "after_teardown"


def test_hook_execute_passes_context():
    seen = []
    hook = Hook(HookType.BEFORE_EACH, "record", seen.append)
    hook.execute("ctx")
    assert seen == ["ctx"]
    assert hook.required is True


def test_registration_and_counts():
    hooks = (
        Hooks()
        .before_all("a", lambda ctx: None)
        .after_all("b", lambda ctx: None)
        .before_each("c", lambda ctx: None)
        .before_each("d", lambda ctx: None)
        .after_each("e", lambda ctx: None)
    )
    assert hooks.total_hooks() == 5
    assert hooks.has_hooks(HookType.BEFORE_EACH)
    assert not hooks.has_hooks(HookType.BEFORE_SETUP)
    names = [h.name for h in hooks.get_hooks(HookType.BEFORE_EACH)]
    assert names == ["c", "d"]
    assert all(h.hook_type is HookType.BEFORE_EACH for h in hooks.get_hooks(HookType.BEFORE_EACH))


def test_execute_runs_in_order():
    order = []
    hooks = Hooks()
    hooks.before_each("first", lambda ctx: order.append(("first", ctx)))
    hooks.before_each("second", lambda ctx: order.append(("second", ctx)))
    hooks.execute(HookType.BEFORE_EACH, 7)
    assert order == [("first", 7), ("second", 7)]


def test_execute_only_runs_matching_type():
    order = []
    hooks = Hooks().before_all("x", order.append).after_all("y", lambda ctx: order.append("after"))
    hooks.execute(HookType.AFTER_ALL, "ctx")
    assert order == ["after"]


def test_failing_hook_raises_hook_error_and_stops():
    ran = []

    def boom(ctx):
        raise RuntimeError("boom")

    hooks = Hooks().after_each("broken", boom).after_each("later", ran.append)
    with pytest.raises(HookError) as info:
        hooks.execute(HookType.AFTER_EACH, None)
    assert info.value.hook_type == "after_each"
    assert str(info.value) == "Hook 'broken' failed: boom"
    assert isinstance(info.value.__cause__, RuntimeError)
    assert ran == []


def test_execute_with_no_hooks_is_noop():
    hooks = Hooks()
    assert hooks.total_hooks() == 0
    hooks.execute(HookType.BEFORE_SETUP, None)
    assert hooks.get_hooks(HookType.BEFORE_SETUP) == ()