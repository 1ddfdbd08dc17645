"""Health probe model."""

from dataclasses import dataclass

from itharness.path_id import PathId

DEFINITION_PORT = 0


@dataclass(slots=True, eq=False)
class HealthProbe:
    """Expected health state for a workload instance or definition.

    Tests flip ``healthy`` at will; the callback endpoint reads it and sets
    ``pinged`` when a proxy asks for it. Identity, not value, distinguishes
    probes, so two registrations with equal fields are still different.

    Attributes:
        workload_id: Absolute workload path.
        version_id: Workload version the probe applies to.
        port: Instance port, or 0 for a definition-level probe.
        healthy: State reported to the asking proxy.
        pinged: Whether a proxy has asked for this probe yet.
    """

    workload_id: PathId
    version_id: str
    port: int = DEFINITION_PORT
    healthy: bool = True
    pinged: bool = False

    @property
    def is_definition(self) -> bool:
        return self.port == DEFINITION_PORT

    def matches(self, workload_id: PathId, version_id: str, port: int) -> bool:
        return (
            self.workload_id == workload_id
            and self.version_id == version_id
            and self.port == port
        )
