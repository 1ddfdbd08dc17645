"""Registry of expected health states, queried by the callback endpoint."""

import threading
from typing import final

from itharness.path_id import PathId

from ._models import DEFINITION_PORT, HealthProbe


@final
class HealthCheckRegistry:
    """Mutable set of health probes keyed by (workload, version, port).

    At most one probe per (workload, version) pair is kept: registering
    removes every earlier probe for the pair, whatever its port, in the
    same critical section as the insert.
    """

    __slots__ = ("_lock", "_probes")

    def __init__(self) -> None:
        self._probes: list[HealthProbe] = []
        self._lock = threading.Lock()

    def register(
        self,
        workload_id: str | PathId,
        version_id: str,
        port: int = DEFINITION_PORT,
        *,
        healthy: bool = True,
    ) -> HealthProbe:
        """Register a probe, replacing probes for the same workload version.

        Args:
            workload_id: Workload path; relative paths are rooted.
            version_id: Workload version.
            port: Instance port, or 0 for a definition-level probe.
            healthy: Initial reported state.

        Returns:
            The new probe. Its ``healthy`` field may be changed at any time.
        """
        probe = HealthProbe(
            workload_id=PathId.parse(workload_id).to_root_path(),
            version_id=version_id,
            port=port,
            healthy=healthy,
        )
        with self._lock:
            self._probes = [
                p
                for p in self._probes
                if not (
                    p.workload_id == probe.workload_id
                    and p.version_id == probe.version_id
                )
            ]
            self._probes.append(probe)
        return probe

    def resolve(self, workload_id: str | PathId, version_id: str, port: int) -> bool:
        """Answer a health query from a workload instance.

        Resolution order: the instance probe matching all three fields, then
        the definition-level probe for the workload version, then healthy.
        The probe that answers is marked as pinged.

        Args:
            workload_id: Workload path; relative paths are rooted.
            version_id: Workload version.
            port: The asking instance's port.

        Returns:
            The state to report.
        """
        app_id = PathId.parse(workload_id).to_root_path()
        with self._lock:
            probe = self._find(app_id, version_id, port)
            if probe is None and port != DEFINITION_PORT:
                probe = self._find(app_id, version_id, DEFINITION_PORT)
            if probe is None:
                return True
            probe.pinged = True
            return probe.healthy

    def _find(self, workload_id: PathId, version_id: str, port: int) -> HealthProbe | None:
        for probe in self._probes:
            if probe.matches(workload_id, version_id, port):
                return probe
        return None

    def probes(self) -> list[HealthProbe]:
        """Return a copy of the registered probes."""
        with self._lock:
            return list(self._probes)

    def clear(self) -> None:
        with self._lock:
            self._probes.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._probes)
