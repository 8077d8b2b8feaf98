#!/usr/bin/env python3
"""
Skills Validator - Configuration

Rule thresholds and naming tables used by the rule checker. Defaults follow
the naming constraints of the `skills` distribution CLI; a repository can
override any of them from a TOML file:

    # .skills-validator.toml
    [validator]
    skill_target_lines = 200
    reserved_names = ["add", "list", "remove"]
    required_sections = ["Common Mistakes"]
    cli_excluded = ["README.md", "metadata.json", "_*", "*.draft.md"]
"""

from __future__ import annotations

import fnmatch
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_FILE = ".skills-validator.toml"

# Words a skill name may not contain anywhere
DEFAULT_RESERVED_WORDS = frozenset({"anthropic", "claude"})

# Command tokens of the skills CLI; a skill named like one is ambiguous on the command line
DEFAULT_RESERVED_NAMES = frozenset(
    {"add", "check", "find", "help", "init", "list", "remove", "update", "version"}
)

# Files the skills CLI skips during installation (fnmatch patterns)
DEFAULT_CLI_EXCLUDED = ("README.md", "metadata.json", "_*")

# Level-2 headings every SKILL.md is expected to carry
DEFAULT_REQUIRED_SECTIONS = ("Common Mistakes", "Delegation")


class ConfigError(Exception):
    """Raised when a configuration file cannot be loaded or has invalid values."""


@dataclass(frozen=True)
class ValidatorConfig:
    """Thresholds and tables for one validation run."""

    min_name_length: int = 4
    max_name_length: int = 64
    skill_target_lines: int = 150
    skill_max_lines: int = 500
    reference_max_lines: int = 500
    max_description_length: int = 1024
    min_trigger_words: int = 5
    description_overlap_threshold: float = 0.5
    reserved_words: frozenset[str] = DEFAULT_RESERVED_WORDS
    reserved_names: frozenset[str] = DEFAULT_RESERVED_NAMES
    cli_excluded: tuple[str, ...] = field(default=DEFAULT_CLI_EXCLUDED)
    required_sections: tuple[str, ...] = field(default=DEFAULT_REQUIRED_SECTIONS)

    def is_cli_excluded(self, filename: str) -> bool:
        """Check whether the skills CLI would drop this file on install."""
        return any(fnmatch.fnmatchcase(filename, pattern) for pattern in self.cli_excluded)


def _coerce(name: str, expected: Any, value: Any) -> Any:
    """Convert a TOML value to the type of the matching default."""
    if isinstance(value, bool):
        raise ConfigError(f"'{name}' has an unsupported value: {value!r}")
    if isinstance(expected, int):
        if not isinstance(value, int):
            raise ConfigError(f"'{name}' must be an integer, got {type(value).__name__}")
        if value < 0:
            raise ConfigError(f"'{name}' must not be negative")
        return value
    if isinstance(expected, float):
        if not isinstance(value, (int, float)):
            raise ConfigError(f"'{name}' must be a number, got {type(value).__name__}")
        if not 0 < value <= 1:
            raise ConfigError(f"'{name}' must be between 0 and 1")
        return float(value)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{name}' must be a list of strings")
    if isinstance(expected, frozenset):
        return frozenset(v.lower() for v in value)
    return tuple(value)


def config_from_mapping(data: dict[str, Any]) -> ValidatorConfig:
    """Build a ValidatorConfig from the [validator] table of a TOML document."""
    table = data.get("validator", {})
    if not isinstance(table, dict):
        raise ConfigError("[validator] must be a table")

    defaults = ValidatorConfig()
    known = {f.name for f in fields(ValidatorConfig)}
    unknown = sorted(set(table) - known)
    if unknown:
        raise ConfigError(f"Unknown configuration key(s): {', '.join(unknown)}")

    overrides = {key: _coerce(key, getattr(defaults, key), value) for key, value in table.items()}
    return ValidatorConfig(**overrides)


def load_config(path: Path | None = None, cwd: Path | None = None) -> ValidatorConfig:
    """Load configuration.

    Args:
        path: Explicit config file (must exist)
        cwd: Directory searched for .skills-validator.toml when no path is given

    Returns:
        ValidatorConfig with file overrides applied, or the defaults
    """
    if path is None:
        candidate = (cwd or Path.cwd()) / DEFAULT_CONFIG_FILE
        if not candidate.is_file():
            return ValidatorConfig()
        path = candidate
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e

    return config_from_mapping(data)
