"""Project configuration read from sheila.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any

from sheila.cli.discovery import SUITE_PATTERN, TEST_FUNCTION_PATTERN
from sheila.errors import SheilaError

DEFAULT_CONFIG_FILE = "sheila.toml"


@dataclass
class BuildConfig:
    target_dir: Path = field(default_factory=lambda: Path("target"))
    debug_dir: str = "debug"
    release_dir: str = "release"
    deps_dir: str = "deps"
    profile: str = "debug"


@dataclass
class DiscoveryConfig:
    rust_file_extensions: list[str] = field(default_factory=lambda: ["rs"])
    test_patterns: list[str] = field(default_factory=lambda: [TEST_FUNCTION_PATTERN])
    suite_patterns: list[str] = field(default_factory=lambda: [SUITE_PATTERN])
    exclude_patterns: list[str] = field(default_factory=lambda: ["target/**", "**/.git/**"])


@dataclass
class ReportingConfig:
    output_dir: Path = field(default_factory=lambda: Path("test-results"))
    formats: list[str] = field(default_factory=lambda: ["json", "html"])
    timestamp_format: str = "%Y%m%d_%H%M%S"


@dataclass
class RunnerConfig:
    default_timeout: int = 30
    max_retries: int = 3
    parallel_limit: int | None = None


@dataclass
class SheilaConfig:
    build: BuildConfig = field(default_factory=BuildConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    runner: RunnerConfig = field(default_factory=RunnerConfig)

    def build_target_path(self, profile: str | None = None) -> Path:
        """Directory holding the compiled test binaries for ``profile``."""
        chosen = profile if profile is not None else self.build.profile
        return self.build.target_dir / chosen / self.build.deps_dir


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    if not isinstance(value, dict):
        raise SheilaError(f"Invalid configuration: missing section '{name}'")
    return value


def _value(section: dict[str, Any], section_name: str, key: str, kind: str) -> Any:
    where = f"{section_name}.{key}"
    if key not in section:
        raise SheilaError(f"Invalid configuration: missing field '{where}'")
    value = section[key]
    if kind == "str":
        ok = isinstance(value, str)
    elif kind == "uint":
        ok = isinstance(value, int) and not isinstance(value, bool) and value >= 0
    else:
        ok = isinstance(value, list) and all(isinstance(item, str) for item in value)
    if not ok:
        raise SheilaError(f"Invalid configuration: field '{where}' has the wrong type")
    return list(value) if kind == "list" else value


def _from_dict(data: dict[str, Any]) -> SheilaConfig:
    build = _section(data, "build")
    discovery = _section(data, "discovery")
    reporting = _section(data, "reporting")
    runner = _section(data, "runner")

    parallel_limit = None
    if "parallel_limit" in runner:
        parallel_limit = _value(runner, "runner", "parallel_limit", "uint")

    return SheilaConfig(
        build=BuildConfig(
            target_dir=Path(_value(build, "build", "target_dir", "str")),
            debug_dir=_value(build, "build", "debug_dir", "str"),
            release_dir=_value(build, "build", "release_dir", "str"),
            deps_dir=_value(build, "build", "deps_dir", "str"),
            profile=_value(build, "build", "profile", "str"),
        ),
        discovery=DiscoveryConfig(
            rust_file_extensions=_value(discovery, "discovery", "rust_file_extensions", "list"),
            test_patterns=_value(discovery, "discovery", "test_patterns", "list"),
            suite_patterns=_value(discovery, "discovery", "suite_patterns", "list"),
            exclude_patterns=_value(discovery, "discovery", "exclude_patterns", "list"),
        ),
        reporting=ReportingConfig(
            output_dir=Path(_value(reporting, "reporting", "output_dir", "str")),
            formats=_value(reporting, "reporting", "formats", "list"),
            timestamp_format=_value(reporting, "reporting", "timestamp_format", "str"),
        ),
        runner=RunnerConfig(
            default_timeout=_value(runner, "runner", "default_timeout", "uint"),
            max_retries=_value(runner, "runner", "max_retries", "uint"),
            parallel_limit=parallel_limit,
        ),
    )


def load_config(path: str | PathLike[str] | None = None) -> SheilaConfig:
    """Load the configuration file, or the defaults if it cannot be read.

    Raises SheilaError when the file exists but is not a valid configuration.
    """
    config_path = Path(path) if path is not None else Path(DEFAULT_CONFIG_FILE)
    try:
        content = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return SheilaConfig()
    try:
        data = tomllib.loads(content)
    except tomllib.TOMLDecodeError as exc:
        raise SheilaError(f"Invalid configuration: {exc}") from exc
    return _from_dict(data)