"""Harness configuration.

This module provides the public API for harness settings, including
loading from defaults, TOML files and the environment.

Example:
    >>> from itharness.config import load_settings
    >>> settings = load_settings()
    >>> settings.timeouts.server_start
    60.0
"""

from itharness.exceptions import ConfigError, ConfigLoadError, ConfigValidationError

from ._defaults import DEFAULT_CONFIG
from ._load import load_settings
from ._loader import (
    deep_merge,
    parse_env_value,
    parse_env_vars,
    parse_legacy_env,
    read_toml_file,
    set_nested_key,
)
from ._models import (
    HarnessSettings,
    LogFormat,
    LoggingConfig,
    LogLevel,
    ProxyConfig,
    RuntimeConfig,
    TimeoutConfig,
)

__all__ = [
    "DEFAULT_CONFIG",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "HarnessSettings",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "ProxyConfig",
    "RuntimeConfig",
    "TimeoutConfig",
    "deep_merge",
    "load_settings",
    "parse_env_value",
    "parse_env_vars",
    "parse_legacy_env",
    "read_toml_file",
    "set_nested_key",
]
