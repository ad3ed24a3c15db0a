# sheila

A toolkit for writing tests: assertion helpers that raise descriptive
errors, scoped fixtures with dependency ordering, lifecycle hooks,
call-recording mocks and parameter sets. A `sheila` command lists tests
found in source files, prints saved reports, controls recorded background
processes and clears caches.

## Installation

```
pip install .
```

To run the package's own tests:

```
pip install ".[test]"
pytest
```

## Library

### Errors

Everything the library raises derives from `sheila.errors.SheilaError`.
The subclasses are `AssertionFailure`, `FixtureError`, `HookError` (which
also carries `hook_type`), `MockError` and `SetupError`. Each has a `kind`
from the `ErrorKind` enum.

### Assertions

Every check in `sheila.assertions` returns `None` when it holds and raises
`AssertionFailure` when it does not. The message gives the expected and
actual values and, when either value spans several lines, a line diff.

```python
from sheila import assertions

assertions.eq(4, 2 + 2)
assertions.contains("hello world", "world")
assertions.matches("abc123", r"\d+")
assertions.approx_eq(0.1 + 0.2, 0.3, 1e-9)
assertions.has_length([1, 2, 3], 3)
assertions.that(10, lambda v: v % 2 == 0, "value is even")
```

The full set is `is_true`, `is_false`, `eq`, `ne`, `gt`, `ge`, `lt`, `le`,
`is_none`, `is_some`, `is_ok`, `is_err` (an outcome counts as an error when
it is an exception instance), `contains`, `starts_with`, `ends_with`,
`matches`, `is_empty`, `is_not_empty`, `has_length`, `contains_item`,
`approx_eq` and `that`. `AssertionResult` is the building block behind
them; its `raise_for_failure()` raises when `passed` is false.

### Fixtures

```python
from sheila.fixtures import FixtureDefinition, FixtureDependencyGraph, FixtureScope

graph = FixtureDependencyGraph()
graph.add_fixture(FixtureDefinition("database", FixtureScope.SUITE))
graph.add_fixture(
    FixtureDefinition("user", FixtureScope.TEST).with_dependencies(["database"])
)
print(graph.resolve_order())  # ['database', 'user']
```

A cycle or a dependency on an undefined fixture makes `resolve_order`
raise `FixtureError`; `has_circular_dependencies()` reports it as a
boolean.

- `FixtureRegistry` sets up suite- or test-scoped fixtures in dependency
  order, tears them down in reverse order, and hands out instances with
  `get_fixture_instance(name)`.
- `FixtureManager` sets a fixture up on demand with `setup_fixture(name,
  context)`, creating missing dependencies first, and tears down all
  instances of a scope with `teardown_by_scope(scope)`.
- `Fixture` is a base class for fixtures written as classes: implement
  `setup(context)`, optionally `teardown(value, context)`, set the `scope`
  class attribute, and call `definition(name)` to get a
  `FixtureDefinition`.

### Hooks

```python
from sheila.hooks import Hooks, HookType

hooks = Hooks().before_each("reset", lambda ctx: None)
hooks.execute(HookType.BEFORE_EACH, context)
```

Hooks of one type run in registration order; the first one that raises
stops the run and is reported as a `HookError`. `get_hooks`, `has_hooks`
and `total_hooks` inspect what is registered.

### Mocks

```python
from sheila.mocks import MockBuilder, MockCollection

mocks = MockCollection()
mocks.register_mock("fetch", MockBuilder().expect_calls(1).returns(42).build())
assert mocks.record_call("fetch", ["id"]) == 42
mocks.verify()
```

The n-th call returns the n-th configured value, then the last one is
repeated; without configured values a call returns `None`. Calling more
often than expected raises `MockError`, or `RuntimeError` when the mock is
built with `panic_on_unexpected(True)`. A validator set with
`with_validator` sees each call's arguments. Return values must be
JSON-serialisable.

Process-wide helpers work on one shared collection: `global_mocks`,
`set_global_mock`, `record_mock_call_global`, `call_count_global`,
`verify_mocks_global` and `clear_mocks_global`.

### Parameters

```python
from sheila.params import ParameterBuilder

collection = ParameterBuilder().add_param("x", [1, 2]).add_param("y", ["a", "b"]).build()
for parameter_set in collection:
    print(parameter_set.display_name())   # [x=1, y="a"], [x=1, y="b"], ...
```

`ParameterCollection.cartesian_product` builds every combination, the
first key varying slowest. `ParameterCollection.from_objects` makes one
set per mapping or dataclass, and `ParameterCollection.from_csv(text,
has_headers)` one set per CSV row, parsing fields as JSON where possible.
`ParameterSet.get(key)` raises `SetupError` for a missing parameter.

## Command line

```
sheila list [PATH] [-f text|json|csv|html] [-v] [--tags a,b]
sheila report [PATH] [-f text|json|csv|html] [--failures-only] [-v]
sheila stop TEST_ID
sheila pause TEST_ID
sheila resume TEST_ID
sheila clear-cache
sheila test [TARGET] [options]
```

- `list` scans `.rs` files under PATH (or the current directory) for
  `#[sheila::suite]` and `#[sheila::test(...)]` markers and prints the
  suites and tests with line numbers, tags, timeouts and retry counts.
  Test attributes inside the marker (`tags = "..."`, `timeout = N`,
  `retries = N`, `ignore`) are read. The `junit` and `tap` formats are not
  supported for listings.
- `report` prints a report file; without PATH it takes the most recently
  modified `.json`, `.csv` or `.html` file in `test-results/`. A JSON run
  result is shown as a summary (with `--failures-only` or `-v`, per test);
  CSV can be shown as a table or converted to JSON or an HTML table; HTML
  is shown raw or with its tags stripped.
- `stop`, `pause` and `resume` take a UUID and look it up among the
  process records saved in `~/.sheila/cache`.
- `clear-cache` empties that cache, deletes files in `test-results/`,
  removes `sheila_*` and `.sheila*` entries from the temporary directory
  and `~/.sheila/temp`, and deletes files whose names contain `test` or
  start with `sheila` from `target/debug/deps` and `target/release/deps`.

Errors are printed to standard error and the command exits with status 1.

For use from code, `sheila.cli.discovery.Discoverer` finds and filters
tests (by target, tags and a grep expression), `sheila.cli.process.ProcessManager`
starts, signals and records background processes, and
`sheila.cli.config.load_config` reads a `sheila.toml` file, falling back to
built-in defaults when the file cannot be read.

## What this package does not do

- It does not run tests. `sheila test` accepts its options, but without
  `--headless` it stops with the error "No test runner is available to
  execute tests"; with `--headless` it only prints a warning.
- It does not write test reports; `report` only displays existing ones.
- No command starts background processes. `stop`, `pause` and `resume`
  can only signal a process started by the same `ProcessManager` object;
  for records loaded from the cache they print their messages without
  signalling anything.
- No command reads `sheila.toml`; the configuration is available only
  through `load_config`.