"""itharness exceptions."""

from pathlib import Path
from typing import Any


class HarnessError(Exception):
    """Base exception for itharness errors."""


class ConfigError(HarnessError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,  # pyright: ignore[reportExplicitAny]
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.errors: list[dict[str, Any]] = errors or []  # pyright: ignore[reportExplicitAny]
        self.source: str | None = source


# =============================================================================
# Supervisor Exceptions
# =============================================================================


class SupervisorError(HarnessError):
    """Base exception for supervised server errors."""


class ServerSpawnError(SupervisorError):
    """Raised when the server process cannot be created or exits during startup.

    Attributes:
        service_name: Name of the supervised server (``server:<port>``).
        exit_code: Exit code if the child exited before becoming ready.
        cause: The underlying exception that caused the failure.
    """

    def __init__(
        self,
        message: str,
        *,
        service_name: str | None = None,
        exit_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and server context.

        Args:
            message: Human-readable error message.
            service_name: Name of the supervised server.
            exit_code: Exit code of the child, if it exited.
            cause: The underlying exception that caused the failure.
        """
        super().__init__(message)
        self.service_name: str | None = service_name
        self.exit_code: int | None = exit_code
        self.cause: Exception | None = cause


class ReadinessTimeoutError(SupervisorError, TimeoutError):
    """Raised when a spawned server never answered its readiness probe in time.

    Attributes:
        service_name: Name of the supervised server.
        timeout: The caller's timeout in seconds.
        attempts: Number of readiness probes issued.
    """

    def __init__(
        self,
        message: str,
        *,
        service_name: str | None = None,
        timeout: float | None = None,
        attempts: int = 0,
    ) -> None:
        """Initialize with error message and readiness context.

        Args:
            message: Human-readable error message.
            service_name: Name of the supervised server.
            timeout: The caller's timeout in seconds.
            attempts: Number of readiness probes issued.
        """
        super().__init__(message)
        self.service_name: str | None = service_name
        self.timeout: float | None = timeout
        self.attempts: int = attempts


# =============================================================================
# Harness Exceptions
# =============================================================================


class WaitTimeoutError(HarnessError, TimeoutError):
    """Raised when a polling wait exceeds its deadline.

    Attributes:
        description: What was being waited for.
        timeout: The wait budget in seconds.
    """

    def __init__(self, description: str, *, timeout: float) -> None:
        """Initialize with the description of the awaited condition.

        Args:
            description: Human-readable description of the awaited condition.
            timeout: The wait budget in seconds.
        """
        super().__init__(f"Timed out after {timeout:.1f}s waiting for {description}")
        self.description: str = description
        self.timeout: float = timeout


class CleanupAssertionError(HarnessError, AssertionError):
    """Raised when the cluster is not a clean slate after cleanup.

    Attributes:
        detail: Pretty-printed state that violated the invariant.
    """

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        """Initialize with error message and offending state.

        Args:
            message: Human-readable error message.
            detail: Pretty-printed state that violated the invariant.
        """
        super().__init__(message)
        self.detail: str | None = detail


class ProtocolViolationError(HarnessError, AssertionError):
    """Raised when the callback endpoint receives a request it cannot route.

    Attributes:
        method: HTTP method of the offending request.
        path: Path of the offending request.
    """

    def __init__(self, message: str, *, method: str, path: str) -> None:
        """Initialize with error message and request context.

        Args:
            message: Human-readable error message.
            method: HTTP method of the offending request.
            path: Path of the offending request.
        """
        super().__init__(message)
        self.method: str = method
        self.path: str = path


class ServerApiError(HarnessError):
    """Raised when the server or cluster API answers with an unexpected status.

    Attributes:
        status_code: HTTP status code of the response.
        body: Response body text.
    """

    def __init__(self, message: str, *, status_code: int, body: str = "") -> None:
        """Initialize with error message and response context.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code of the response.
            body: Response body text.
        """
        super().__init__(message)
        self.status_code: int = status_code
        self.body: str = body
