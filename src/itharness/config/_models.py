"""Configuration models.

This module defines the Pydantic models for harness settings:
- LoggingConfig: structlog output settings
- RuntimeConfig: how the supervised server binary is launched
- ProxyConfig: how workload proxies are launched
- TimeoutConfig: default budgets for starts, waits and cleanup
- HarnessSettings: the root container
"""

import sys
from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    file: str = ""


class RuntimeConfig(BaseModel):
    """How the supervised server is launched.

    The command prefix is ``[executable, *options, entry_point]``. When
    ``options`` is unset, JVM options are derived from ``max_heap`` and
    ``classpath``.

    Attributes:
        executable: Runtime executable path.
        max_heap: Maximum heap size passed as ``-Xmx``.
        classpath: Classpath passed as ``-classpath``.
        entry_point: Main class or script to run.
        options: Explicit runtime options, replacing the JVM defaults.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    executable: str = "java"
    max_heap: str = "1g"
    classpath: str = "target/classes"
    entry_point: str = "mesosphere.marathon.Main"
    options: tuple[str, ...] | None = None

    def runtime_options(self) -> tuple[str, ...]:
        """Return the options placed between the executable and entry point."""
        if self.options is not None:
            return self.options
        return (f"-Xmx{self.max_heap}", "-classpath", self.classpath)

    def command_prefix(self) -> list[str]:
        """Return the command that precedes the server's own arguments."""
        return [self.executable, *self.runtime_options(), self.entry_point]


class ProxyConfig(BaseModel):
    """How workload proxies are launched.

    Attributes:
        python: Interpreter running the proxy (empty uses the current one).
        target_dirs: Host directory holding build outputs, for docker proxies.
        build_id: Tag of the build image used by docker proxies.
        ivy2_dir: Host ivy cache mounted into docker proxies.
        sbt_dir: Host sbt directory mounted into docker proxies.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    python: str = ""
    target_dirs: str = "/marathon"
    build_id: str = "test"
    ivy2_dir: str = "/root/.ivy2"
    sbt_dir: str = "/root/.sbt"

    @property
    def interpreter(self) -> str:
        """Return the interpreter used to run proxies."""
        return self.python or sys.executable


class TimeoutConfig(BaseModel):
    """Default budgets in seconds.

    Attributes:
        server_start: Budget for a supervised server to become ready.
        wait: Default budget for task, health and deployment waits.
        event: Default budget for single event waits.
        cleanup: Budget for the cluster to reclaim resources during cleanup.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    server_start: float = Field(default=60.0, gt=0)
    wait: float = Field(default=30.0, gt=0)
    event: float = Field(default=60.0, gt=0)
    cleanup: float = Field(default=45.0, gt=0)


class HarnessSettings(BaseModel):
    """Root settings container.

    Attributes:
        logging: Logging configuration.
        runtime: Supervised server launch configuration.
        proxy: Workload proxy configuration.
        timeouts: Default budgets.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
