"""Shared utilities for itharness."""

from ._logging import create_harness_logger, logger_from_config
from ._ports import find_open_port

__all__ = [
    "create_harness_logger",
    "find_open_port",
    "logger_from_config",
]
