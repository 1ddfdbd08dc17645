"""Logging utilities for itharness.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted logs to stderr or a log file. Each logger
is self-contained and does not modify global structlog configuration, so
the harness never interferes with logging set up by the code under test.
"""

import logging
import sys
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, TextIO, cast

import structlog

from itharness.config import LoggingConfig

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

LogFormatType = Literal["json", "text"]

# Log files opened by this module, shared between loggers writing to the same path.
_open_files: dict[Path, TextIO] = {}


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks ITHARNESS_DEBUG first (sets DEBUG if present), then
    ITHARNESS_LOG_LEVEL. Defaults to INFO if neither is set.

    Returns:
        The logging level as an integer.
    """
    if getenv("ITHARNESS_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(getenv("ITHARNESS_LOG_LEVEL", "info").upper(), logging.INFO)


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, ITHARNESS_DEBUG overrides to DEBUG level.

    Returns:
        The logging level as an integer.
    """
    if respect_env and getenv("ITHARNESS_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def _open_log_file(log_file_path: str) -> TextIO:
    log_path = Path(log_file_path).resolve()
    handle = _open_files.get(log_path)
    if handle is None or handle.closed:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handle = log_path.open("a", encoding="utf-8")
        _open_files[log_path] = handle
    return handle


def _create_logger(
    log_file_path: str = "",
    *,
    log_level: int | None = None,
    log_format: LogFormatType = "text",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger.

    Args:
        log_file_path: Path to the log file, opened in append mode. Empty
            writes to stderr.
        log_level: Override log level (uses env vars if not specified).
        log_format: Output format, either "json" or "text".

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = log_level if log_level is not None else _get_log_level()
    output = _open_log_file(log_file_path) if log_file_path else sys.stderr

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    wrapper_class = structlog.make_filtering_bound_logger(effective_level)

    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            structlog.WriteLogger(file=output),
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )


def create_harness_logger(
    component: str,
    *,
    level: str | None = None,
    log_format: LogFormatType = "text",
    log_file: str = "",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger for one harness component.

    The log level is determined by (in order of precedence):
    1. ITHARNESS_DEBUG environment variable (if set, enables DEBUG level)
    2. The `level` parameter (if provided)
    3. ITHARNESS_LOG_LEVEL environment variable
    4. Default: INFO

    Args:
        component: Component name bound to every entry (e.g. ``server:8080``).
        level: Optional log level string (debug, info, warning, error).
        log_format: Output format, either "json" or "text".
        log_file: Path to log file (stderr if empty).

    Returns:
        A FilteringBoundLogger with ``component`` bound.
    """
    effective_level: int | None = None
    if level is not None:
        effective_level = _log_level_from_string(level, respect_env=True)

    logger = _create_logger(log_file, log_level=effective_level, log_format=log_format)
    return logger.bind(component=component)


def logger_from_config(
    component: str,
    config: LoggingConfig | None = None,
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a component logger from a LoggingConfig section.

    Args:
        component: Component name bound to every entry.
        config: Logging settings; environment defaults apply when None.

    Returns:
        A FilteringBoundLogger with ``component`` bound.
    """
    if config is None:
        return create_harness_logger(component)
    return create_harness_logger(
        component,
        level=config.level.value,
        log_format=cast("LogFormatType", config.format.value),
        log_file=config.file,
    )
