"""Layered configuration for calexpr.

Configuration is merged from several sources in priority order (later
sources override earlier ones), validated against a schema and exposed
through a typed profile.

Architecture:
    ConfigSource[] (ordered by priority)
         |
         +---> FileConfigSource (YAML, JSON, TOML)
         +---> EnvConfigSource (environment variables)
         |
         v
    ConfigManager
         |
         +---> Defaults, Merge & Validate
         |
         v
    ConfigProfile (typed access)

Usage:
    >>> from calexpr.infrastructure.config import load_config
    >>>
    >>> config = load_config(config_path="calexpr.yaml")
    >>> config.get_str("schedule.timezone")
    'UTC'
    >>> config.get_int("schedule.max_years")
    100

Environment variables use the ``CALEXPR_`` prefix and ``__`` between
nesting levels, e.g. ``CALEXPR_SCHEDULE__TIMEZONE=Europe/Paris``.
"""

from __future__ import annotations

import copy
import json
import os
import re
import threading
import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from calexpr.schedule.composer import SearchLimits


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(Exception):
    """Base configuration error."""


class ConfigValidationError(ConfigError):
    """Configuration validation error."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__(f"Configuration validation failed: {', '.join(errors)}")


class ConfigSourceError(ConfigError):
    """Configuration source error."""


# =============================================================================
# Configuration Sources
# =============================================================================


class ConfigSource(ABC):
    """Abstract base class for configuration sources.

    Sources are merged in ascending priority order, so a source with a
    higher priority overrides the keys it shares with lower ones.
    """

    def __init__(self, priority: int = 0) -> None:
        self._priority = priority

    @property
    def priority(self) -> int:
        return self._priority

    @abstractmethod
    def load(self) -> dict[str, Any]:
        """Load configuration from source.

        Returns:
            Dictionary of configuration values.
        """


class EnvConfigSource(ConfigSource):
    """Environment variable configuration source.

    Example:
        CALEXPR_SCHEDULE__TIMEZONE=Europe/Paris
        CALEXPR_LOGGING__LEVEL=DEBUG

        Will produce:
        {"schedule": {"timezone": "Europe/Paris"}, "logging": {"level": "DEBUG"}}
    """

    def __init__(
        self,
        prefix: str = "CALEXPR",
        separator: str = "__",
        priority: int = 100,
        environ: dict[str, str] | None = None,
    ) -> None:
        """Initialize environment source.

        Args:
            prefix: Environment variable prefix.
            separator: Separator between nesting levels.
            priority: Source priority.
            environ: Mapping to read instead of ``os.environ``.
        """
        super().__init__(priority)
        self._prefix = prefix
        self._separator = separator
        self._environ = environ

    def load(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        prefix = f"{self._prefix}_"
        environ = os.environ if self._environ is None else self._environ

        for key, value in environ.items():
            if not key.startswith(prefix):
                continue
            parts = key[len(prefix) :].lower().split(self._separator)

            current = result
            for part in parts[:-1]:
                current = current.setdefault(part, {})
            current[parts[-1]] = self._parse_value(value)

        return result

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if re.fullmatch(r"-?\d+", value):
            return int(value)
        if re.fullmatch(r"-?\d+\.\d*", value):
            return float(value)

        lowered = value.lower()
        if lowered in ("true", "yes", "on"):
            return True
        if lowered in ("false", "no", "off"):
            return False
        if lowered in ("null", "none", ""):
            return None

        if value.startswith(("[", "{")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value


class FileConfigSource(ConfigSource):
    """File-based configuration source.

    Supports YAML, JSON, and TOML formats, detected from the file extension.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        required: bool = False,
        priority: int = 50,
    ) -> None:
        """Initialize file source.

        Args:
            path: Path to configuration file.
            required: Raise error if file not found.
            priority: Source priority.
        """
        super().__init__(priority)
        self._path = Path(path)
        self._required = required

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, Any]:
        if not self._path.exists():
            if self._required:
                raise ConfigSourceError(f"Configuration file not found: {self._path}")
            return {}

        try:
            content = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigSourceError(f"Failed to read config {self._path}: {e}") from e
        suffix = self._path.suffix.lower()

        try:
            if suffix in (".yaml", ".yml"):
                data = yaml.safe_load(content) or {}
            elif suffix == ".json":
                data = json.loads(content)
            elif suffix == ".toml":
                data = tomllib.loads(content)
            else:
                raise ConfigSourceError(f"Unsupported file format: {suffix}")
        except (yaml.YAMLError, json.JSONDecodeError, tomllib.TOMLDecodeError) as e:
            raise ConfigSourceError(f"Failed to load config {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigSourceError(f"Configuration root must be a mapping: {self._path}")
        return data


# =============================================================================
# Configuration Schema & Validation
# =============================================================================


@dataclass
class ConfigField:
    """Configuration field definition for validation."""

    name: str
    type: type | tuple[type, ...] = str
    required: bool = False
    default: Any = None
    min_value: float | None = None
    max_value: float | None = None
    choices: list[Any] | None = None
    description: str = ""


@dataclass
class ConfigSchema:
    """Configuration schema for validation.

    Example:
        >>> schema = ConfigSchema()
        >>> schema.add_field("schedule.max_years", int, default=100, min_value=1)
    """

    fields: list[ConfigField] = field(default_factory=list)

    def add_field(
        self,
        name: str,
        type: type | tuple[type, ...] = str,
        **kwargs: Any,
    ) -> "ConfigSchema":
        self.fields.append(ConfigField(name, type, **kwargs))
        return self

    def defaults(self) -> dict[str, Any]:
        """Nested dictionary of every field default."""
        result: dict[str, Any] = {}
        for field_def in self.fields:
            if field_def.default is None:
                continue
            *parents, leaf = field_def.name.split(".")
            current = result
            for part in parents:
                current = current.setdefault(part, {})
            current[leaf] = field_def.default
        return result


class ConfigValidator:
    """Validates configuration against a schema."""

    def __init__(self, schema: ConfigSchema) -> None:
        self._schema = schema

    def validate(self, config: dict[str, Any]) -> list[str]:
        """Validate configuration.

        Returns:
            List of validation errors (empty if valid).
        """
        errors: list[str] = []

        for field_def in self._schema.fields:
            value = _get_nested(config, field_def.name)

            if value is None:
                if field_def.required:
                    errors.append(f"Required field '{field_def.name}' is missing")
                continue

            # bool is an int subclass, but never a valid int setting
            if not isinstance(value, field_def.type) or (
                isinstance(value, bool) and field_def.type is not bool
            ):
                expected = getattr(field_def.type, "__name__", str(field_def.type))
                errors.append(
                    f"Field '{field_def.name}' should be {expected}, "
                    f"got {type(value).__name__}"
                )
                continue

            if isinstance(value, (int, float)) and not isinstance(value, bool):
                if field_def.min_value is not None and value < field_def.min_value:
                    errors.append(f"Field '{field_def.name}' must be >= {field_def.min_value}")
                if field_def.max_value is not None and value > field_def.max_value:
                    errors.append(f"Field '{field_def.name}' must be <= {field_def.max_value}")

            if field_def.choices and value not in field_def.choices:
                errors.append(f"Field '{field_def.name}' must be one of {field_def.choices}")

        return errors


# =============================================================================
# Configuration Profile
# =============================================================================


class ConfigProfile:
    """Typed configuration access.

    Example:
        >>> profile = ConfigProfile({"schedule": {"max_years": 50}})
        >>> profile.get_int("schedule.max_years", default=100)
        50
    """

    def __init__(self, config: dict[str, Any]) -> None:
        self._config = config

    def get(self, key: str, default: Any = None, *, required: bool = False) -> Any:
        """Get configuration value.

        Args:
            key: Configuration key (dot-separated for nesting).
            default: Default value if not found.
            required: Raise error if not found.
        """
        value = _get_nested(self._config, key)
        if value is None:
            if required:
                raise ConfigError(f"Required configuration '{key}' not found")
            return default
        return value

    def get_str(self, key: str, default: str = "") -> str:
        value = self.get(key, default)
        return str(value) if value is not None else default

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get(key, default)
        if isinstance(value, int):
            return value
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "yes", "1", "on")
        return bool(value)

    def get_dict(self, key: str, default: dict[str, Any] | None = None) -> dict[str, Any]:
        value = self.get(key, default)
        if isinstance(value, dict):
            return value
        return default or {}

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)

    def __contains__(self, key: str) -> bool:
        return _get_nested(self._config, key) is not None

    def __getitem__(self, key: str) -> Any:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value


# =============================================================================
# Configuration Manager
# =============================================================================


class ConfigManager:
    """Merges configuration sources into a validated profile.

    Example:
        >>> manager = ConfigManager()
        >>> manager.add_source(FileConfigSource("calexpr.yaml"))
        >>> manager.add_source(EnvConfigSource())
        >>> config = manager.load()
    """

    def __init__(self, schema: ConfigSchema | None = None) -> None:
        self._sources: list[ConfigSource] = []
        self._schema = schema
        self._profile: ConfigProfile | None = None

    def add_source(self, source: ConfigSource) -> "ConfigManager":
        self._sources.append(source)
        self._sources.sort(key=lambda s: s.priority)
        return self

    def set_schema(self, schema: ConfigSchema) -> "ConfigManager":
        self._schema = schema
        return self

    def load(self, validate: bool = True) -> ConfigProfile:
        """Load configuration from all sources.

        Raises:
            ConfigSourceError: If a required source cannot be read.
            ConfigValidationError: If the merged configuration is invalid.
        """
        config = self._schema.defaults() if self._schema else {}
        for source in self._sources:
            _merge_config(config, source.load())

        if validate and self._schema:
            errors = ConfigValidator(self._schema).validate(config)
            if errors:
                raise ConfigValidationError(errors)

        self._profile = ConfigProfile(config)
        return self._profile

    @property
    def config(self) -> ConfigProfile:
        if self._profile is None:
            return self.load()
        return self._profile


def _get_nested(config: dict[str, Any], key: str) -> Any:
    current: Any = config
    for part in key.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def _merge_config(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Deep merge ``override`` into ``base``."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_config(base[key], value)
        else:
            base[key] = value


# =============================================================================
# Default Schema
# =============================================================================


def create_default_schema() -> ConfigSchema:
    """Create the default calexpr configuration schema."""
    schema = ConfigSchema()

    # Schedule evaluation
    schema.add_field("schedule.timezone", str, default="UTC")
    schema.add_field("schedule.max_years", int, default=100, min_value=1, max_value=8000)
    schema.add_field("schedule.max_steps", int, default=100_000, min_value=100)

    # Logging
    schema.add_field("logging.level", str, default="WARNING",
                     choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    schema.add_field("logging.format", str, default="console",
                     choices=["console", "json", "logfmt"])

    return schema


def search_limits_from_config(profile: ConfigProfile) -> SearchLimits:
    """Build search limits from the ``schedule`` section."""
    defaults = SearchLimits()
    return SearchLimits(
        max_steps=profile.get_int("schedule.max_steps", defaults.max_steps),
        max_years=profile.get_int("schedule.max_years", defaults.max_years),
    )


# =============================================================================
# Global Configuration
# =============================================================================

_global_profile: ConfigProfile | None = None
_lock = threading.Lock()


def load_config(
    *,
    config_path: str | Path | None = None,
    env_prefix: str = "CALEXPR",
    validate: bool = True,
) -> ConfigProfile:
    """Load configuration and make it the global profile.

    Args:
        config_path: Optional YAML, JSON or TOML file; it must exist.
        env_prefix: Environment variable prefix.
        validate: Validate configuration.

    Returns:
        ConfigProfile instance.
    """
    global _global_profile

    manager = ConfigManager(create_default_schema())
    if config_path:
        manager.add_source(FileConfigSource(config_path, required=True, priority=50))
    manager.add_source(EnvConfigSource(prefix=env_prefix, priority=100))

    profile = manager.load(validate=validate)
    with _lock:
        _global_profile = profile
    return profile


def get_config() -> ConfigProfile:
    """Get the global configuration, loading defaults on first use."""
    with _lock:
        profile = _global_profile
    if profile is None:
        return load_config()
    return profile


def reset_config() -> None:
    """Forget the global configuration."""
    global _global_profile

    with _lock:
        _global_profile = None
