"""Configuration and logging for calexpr.

Usage:
    >>> from calexpr.infrastructure import load_config, configure_logging, LogConfig
    >>>
    >>> config = load_config(config_path="calexpr.yaml")
    >>> log_config = LogConfig.from_config(config)
    >>> configure_logging(level=log_config.level, format=log_config.format)
"""

# Configuration
from calexpr.infrastructure.config import (
    ConfigError,
    ConfigField,
    ConfigManager,
    ConfigProfile,
    ConfigSchema,
    ConfigSource,
    ConfigSourceError,
    ConfigValidationError,
    ConfigValidator,
    EnvConfigSource,
    FileConfigSource,
    create_default_schema,
    get_config,
    load_config,
    reset_config,
    search_limits_from_config,
)

# Logging
from calexpr.infrastructure.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogConfig,
    LogfmtFormatter,
    LogLevel,
    configure_logging,
    get_logger,
    reset_logging,
)

__all__ = [
    # Configuration
    "ConfigError",
    "ConfigField",
    "ConfigManager",
    "ConfigProfile",
    "ConfigSchema",
    "ConfigSource",
    "ConfigSourceError",
    "ConfigValidationError",
    "ConfigValidator",
    "EnvConfigSource",
    "FileConfigSource",
    "create_default_schema",
    "get_config",
    "load_config",
    "reset_config",
    "search_limits_from_config",
    # Logging
    "ConsoleFormatter",
    "JsonFormatter",
    "LogConfig",
    "LogfmtFormatter",
    "LogLevel",
    "configure_logging",
    "get_logger",
    "reset_logging",
]
