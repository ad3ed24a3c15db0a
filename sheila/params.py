"""Parameter sets for parameterised tests."""

from __future__ import annotations

import csv
import dataclasses
import io
import itertools
import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from sheila.errors import SetupError


def _to_json_value(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError) as exc:
        raise SetupError(f"Value is not JSON-serialisable: {exc}") from exc


def _reject_constant(name: str) -> Any:
    raise ValueError(name)


def _parse_field(text: str) -> Any:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return text


def _display(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass
class ParameterSet:
    """Named values passed to one invocation of a parameterised test."""

    values: dict[str, Any] = field(default_factory=dict)
    name: str | None = None
    description: str | None = None

    def with_param(self, key: str, value: Any) -> ParameterSet:
        self.values[str(key)] = _to_json_value(value)
        return self

    def with_name(self, name: str) -> ParameterSet:
        self.name = str(name)
        return self

    def with_description(self, description: str) -> ParameterSet:
        self.description = str(description)
        return self

    def get(self, key: str) -> Any:
        """Return a copy of the value under ``key``; SetupError if absent."""
        if key not in self.values:
            raise SetupError(f"Parameter '{key}' not found")
        return json.loads(json.dumps(self.values[key]))

    def contains(self, key: str) -> bool:
        return key in self.values

    def keys(self) -> Iterator[str]:
        return iter(self.values)

    def display_name(self) -> str:
        if self.name is not None:
            return self.name
        inner = ", ".join(f"{key}={_display(value)}" for key, value in self.values.items())
        return f"[{inner}]"


@dataclass
class ParameterCollection:
    """An ordered collection of parameter sets."""

    sets: list[ParameterSet] = field(default_factory=list)
    name: str | None = None
    description: str | None = None

    def add_set(self, parameter_set: ParameterSet) -> ParameterCollection:
        self.sets.append(parameter_set)
        return self

    def with_name(self, name: str) -> ParameterCollection:
        self.name = str(name)
        return self

    def with_description(self, description: str) -> ParameterCollection:
        self.description = str(description)
        return self

    @staticmethod
    def cartesian_product(parameters: Mapping[str, Iterable[Any]]) -> ParameterCollection:
        """One set for every combination of values, the first key varying slowest."""
        if not parameters:
            return ParameterCollection()
        keys = list(parameters)
        value_lists = [list(parameters[key]) for key in keys]
        sets = [
            ParameterSet(values=dict(zip(keys, combination)))
            for combination in itertools.product(*value_lists)
        ]
        return ParameterCollection(sets=sets)

    @staticmethod
    def from_objects(objects: Iterable[Any]) -> ParameterCollection:
        """One set per object, each of which must serialise to a JSON object."""
        sets = []
        for index, obj in enumerate(objects, start=1):
            value = _to_json_value(obj)
            if not isinstance(value, dict):
                raise SetupError("Object must serialize to JSON object")
            sets.append(ParameterSet(values=value, name=f"Set {index}"))
        return ParameterCollection(sets=sets)

    @staticmethod
    def from_csv(csv_data: str, has_headers: bool) -> ParameterCollection:
        """One set per CSV row, fields parsed as JSON where possible.

        The first row is always read as the header row. With ``has_headers``
        the values are keyed by header name; otherwise by ``col_<index>``.
        Rows whose field count differs from the header raise SetupError.
        """
        try:
            rows = [row for row in csv.reader(io.StringIO(csv_data)) if row]
        except csv.Error as exc:
            raise SetupError(f"CSV parse error: {exc}") from exc
        if not rows:
            return ParameterCollection(description="Generated from CSV data")

        headers, records = rows[0], rows[1:]
        sets = []
        for index, record in enumerate(records, start=1):
            if len(record) != len(headers):
                raise SetupError(
                    f"CSV parse error: found record with {len(record)} fields, "
                    f"but the previous record has {len(headers)} fields"
                )
            keys = headers if has_headers else [f"col_{i}" for i in range(len(record))]
            values = {key: _parse_field(text) for key, text in zip(keys, record)}
            sets.append(ParameterSet(values=values, name=f"Row {index}"))
        return ParameterCollection(sets=sets, description="Generated from CSV data")

    def is_empty(self) -> bool:
        return not self.sets

    def __len__(self) -> int:
        return len(self.sets)

    def __iter__(self) -> Iterator[ParameterSet]:
        return iter(self.sets)


class ParameterBuilder:
    """Collects value lists per parameter and builds their cartesian product."""

    def __init__(self) -> None:
        self._parameters: dict[str, list[Any]] = {}

    def add_param(self, key: str, values: Iterable[Any]) -> ParameterBuilder:
        self._parameters[str(key)] = [_to_json_value(value) for value in values]
        return self

    def build(self) -> ParameterCollection:
        return ParameterCollection.cartesian_product(self._parameters)