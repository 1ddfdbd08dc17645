"""Expected health states for workloads under test.

Key Components:
    - HealthProbe: Mutable expected state for one workload instance or definition
    - HealthCheckRegistry: Thread-safe probe set with instance/definition fallback
"""

from ._models import DEFINITION_PORT, HealthProbe
from ._registry import HealthCheckRegistry

__all__ = [
    "DEFINITION_PORT",
    "HealthCheckRegistry",
    "HealthProbe",
]
