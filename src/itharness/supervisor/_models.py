"""Data models for the server supervisor.

This module defines:
- ServerState: Lifecycle states of a supervised server
- ServerSettings: The ordered ``--key value`` settings passed to the server
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path  # noqa: TC003 - Used in runtime type annotations

SECRET_FILE_PREFIX = "server-secret"
SECRET_CONTENT = "secret1"
AUTHENTICATION_PRINCIPAL = "principal"
SERVER_ROLE = "foo"


class ServerState(StrEnum):
    """Supervised server lifecycle states.

    - NOT_STARTED: No child has been spawned yet
    - RUNNING: A child is alive and answered its readiness probe
    - STOPPED: The child was killed by ``stop()`` or ``close()``
    """

    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True, slots=True)
class ServerSettings:
    """Ordered server settings, flattened into ``--key value`` arguments.

    Attributes:
        values: Setting names mapped to values, in argument order.
    """

    values: dict[str, str] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        *,
        master_url: str,
        coordination_url: str,
        http_port: int,
        secret_file: Path,
        extra: Mapping[str, str] | None = None,
    ) -> "ServerSettings":
        """Build the fixed settings followed by caller overrides.

        A key in ``extra`` that collides with a fixed setting replaces its
        value in place; new keys are appended in the caller's order.

        Args:
            master_url: Cluster master URL.
            coordination_url: Coordination service URL.
            http_port: Port the server listens on.
            secret_file: Path of the authentication secret file.
            extra: Caller settings, which win on key collision.

        Returns:
            The merged settings.
        """
        values = {
            "master": master_url,
            "mesos_authentication_principal": AUTHENTICATION_PRINCIPAL,
            "mesos_role": SERVER_ROLE,
            "http_port": str(http_port),
            "zk": coordination_url,
            "mesos_authentication_secret_file": str(secret_file),
            "event_subscriber": "http_callback",
            "access_control_allow_origin": "*",
            "reconciliation_initial_delay": "600000",
            "min_revive_offers_interval": "100",
        }
        values.update(extra or {})
        return cls(values)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self.values.items())

    def args(self) -> list[str]:
        """Return the settings as ``["--key", "value", ...]``."""
        return [item for key, value in self.values.items() for item in (f"--{key}", value)]
