"""Fixtures: definitions, dependency ordering and scoped lifecycles."""

from __future__ import annotations

import enum
import json
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sheila.errors import FixtureError

SetupFunction = Callable[[Any], Any]
TeardownFunction = Callable[[Any, Any], Any]


class FixtureScope(enum.Enum):
    """When a fixture is created and destroyed."""

    SESSION = "session"
    """Created once per test run and shared across all tests."""
    SUITE = "suite"
    """Created once per suite and shared across its tests."""
    TEST = "test"
    """Created once per test."""
    INVOCATION = "invocation"
    """Created for each invocation of a (parameterised) test."""

    def __str__(self) -> str:
        return self.value


@dataclass
class FixtureDefinition:
    """Describes a fixture: its scope, dependencies and setup/teardown callables."""

    name: str
    scope: FixtureScope = FixtureScope.TEST
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    required: bool = True
    is_async: bool = False
    dependencies: list[str] = field(default_factory=list)
    setup: SetupFunction | None = None
    teardown: TeardownFunction | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def with_setup(self, setup: SetupFunction) -> FixtureDefinition:
        self.setup = setup
        return self

    def with_teardown(self, teardown: TeardownFunction) -> FixtureDefinition:
        self.teardown = teardown
        return self

    def with_dependencies(self, deps: list[str]) -> FixtureDefinition:
        self.dependencies = list(deps)
        return self

    def depends_on(self, fixture_name: str) -> FixtureDefinition:
        self.dependencies.append(fixture_name)
        return self

    def with_metadata(self, key: str, value: Any) -> FixtureDefinition:
        """Attach a JSON-serialisable metadata value under ``key``."""
        try:
            self.metadata[str(key)] = json.loads(json.dumps(value))
        except (TypeError, ValueError) as exc:
            raise FixtureError(f"Metadata '{key}' is not serialisable: {exc}") from exc
        return self


class Fixture:
    """Base class for fixtures written as classes.

    Subclasses implement ``setup`` and may override ``teardown``, ``scope``
    and ``dependencies``.
    """

    scope: FixtureScope = FixtureScope.TEST
    dependencies: tuple[str, ...] = ()

    def setup(self, context: Any) -> Any:
        raise NotImplementedError(f"{type(self).__name__} must implement setup()")

    def teardown(self, value: Any, context: Any) -> None:
        return None

    def definition(self, name: str) -> FixtureDefinition:
        """Build a FixtureDefinition that calls this fixture's setup and teardown."""
        return (
            FixtureDefinition(str(name), type(self).scope)
            .with_setup(self.setup)
            .with_teardown(self.teardown)
        )


class FixtureDependencyGraph:
    """Fixtures keyed by name, ordered so dependencies come first."""

    def __init__(self) -> None:
        self._dependencies: dict[str, list[str]] = {}
        self._fixtures: dict[str, FixtureDefinition] = {}

    def add_fixture(self, fixture: FixtureDefinition) -> None:
        self._dependencies[fixture.name] = list(fixture.dependencies)
        self._fixtures[fixture.name] = fixture

    def resolve_order(self) -> list[str]:
        """Return fixture names in dependency order.

        Raises FixtureError on a cycle or a dependency on an undefined fixture.
        """
        visited: set[str] = set()
        in_progress: set[str] = set()
        order: list[str] = []

        def visit(name: str) -> None:
            if name in in_progress:
                raise FixtureError(
                    f"Circular dependency detected involving fixture '{name}'"
                )
            if name in visited:
                return
            in_progress.add(name)
            for dep in self._dependencies.get(name, ()):
                if dep not in self._fixtures:
                    raise FixtureError(
                        f"Fixture '{name}' depends on undefined fixture '{dep}'"
                    )
                visit(dep)
            in_progress.discard(name)
            visited.add(name)
            order.append(name)

        for name in self._fixtures:
            if name not in visited:
                visit(name)
        return order

    def get_dependents(self, fixture_name: str) -> list[str]:
        return [name for name, deps in self._dependencies.items() if fixture_name in deps]

    def has_circular_dependencies(self) -> bool:
        try:
            self.resolve_order()
        except FixtureError:
            return True
        return False

    def get_fixture(self, name: str) -> FixtureDefinition | None:
        return self._fixtures.get(name)

    def all_names(self) -> list[str]:
        return list(self._fixtures)


class FixtureRegistry:
    """Sets up and tears down suite- and test-scoped fixtures in dependency order."""

    def __init__(self) -> None:
        self.graph = FixtureDependencyGraph()
        self.suite_instances: dict[str, Any] = {}
        self.test_instances: dict[str, Any] = {}

    def register_fixture(self, fixture: FixtureDefinition) -> None:
        self.graph.add_fixture(fixture)

    def _setup(self, scope: FixtureScope, store: dict[str, Any], context: Any) -> None:
        for name in self.graph.resolve_order():
            fixture = self.graph.get_fixture(name)
            if fixture is not None and fixture.scope is scope and fixture.setup is not None:
                store[name] = fixture.setup(context)

    def _teardown(self, scope: FixtureScope, store: dict[str, Any], context: Any) -> None:
        for name in reversed(self.graph.resolve_order()):
            fixture = self.graph.get_fixture(name)
            if fixture is None or fixture.scope is not scope or name not in store:
                continue
            instance = store.pop(name)
            if fixture.teardown is not None:
                fixture.teardown(instance, context)

    def setup_suite_fixtures(self, context: Any) -> None:
        self._setup(FixtureScope.SUITE, self.suite_instances, context)

    def setup_test_fixtures(self, context: Any) -> None:
        self._setup(FixtureScope.TEST, self.test_instances, context)

    def teardown_test_fixtures(self, context: Any) -> None:
        self._teardown(FixtureScope.TEST, self.test_instances, context)

    def teardown_suite_fixtures(self, context: Any) -> None:
        self._teardown(FixtureScope.SUITE, self.suite_instances, context)

    def get_fixture_instance(self, name: str) -> Any:
        """Return the test-scoped instance of ``name``, else the suite one, else None."""
        if name in self.test_instances:
            return self.test_instances[name]
        return self.suite_instances.get(name)


@dataclass
class FixtureInstance:
    """A set-up fixture value together with the context it was created in."""

    definition: FixtureDefinition
    value: Any
    context: Any
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def teardown(self) -> None:
        if self.definition.teardown is not None:
            self.definition.teardown(self.value, self.context)


class FixtureManager:
    """Creates fixture instances on demand and keeps them per scope."""

    def __init__(self) -> None:
        self._definitions: dict[str, FixtureDefinition] = {}
        self._session: dict[str, FixtureInstance] = {}
        self._suite: dict[str, FixtureInstance] = {}
        self._test: dict[str, FixtureInstance] = {}

    def _store(self, scope: FixtureScope) -> dict[str, FixtureInstance]:
        if scope is FixtureScope.SESSION:
            return self._session
        if scope is FixtureScope.SUITE:
            return self._suite
        return self._test

    def register(self, definition: FixtureDefinition) -> None:
        self._definitions[definition.name] = definition

    def get_fixture(self, name: str, scope: FixtureScope) -> FixtureInstance | None:
        return self._store(scope).get(name)

    def setup_fixture(self, name: str, context: Any) -> FixtureInstance:
        """Set up ``name`` and any missing dependencies, returning the new instance."""
        definition = self._definitions.get(name)
        if definition is None:
            raise FixtureError(f"Fixture '{name}' not found")

        for dep in definition.dependencies:
            if self.get_fixture(dep, definition.scope) is None:
                self.setup_fixture(dep, context)

        value = definition.setup(context) if definition.setup is not None else None
        instance = FixtureInstance(definition, value, context)
        self._store(definition.scope)[name] = instance
        return instance

    def teardown_by_scope(self, scope: FixtureScope) -> None:
        """Remove every instance of ``scope`` and run their teardowns in creation order."""
        store = self._store(scope)
        instances = list(store.values())
        store.clear()
        for instance in instances:
            instance.teardown()

    def all_names(self) -> list[str]:
        return list(self._definitions)

    def has_fixture(self, name: str) -> bool:
        return name in self._definitions