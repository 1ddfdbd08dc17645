"""Integration-test harness for a supervised scheduler server.

Example:
    >>> from itharness import ServerSuite
    >>> with ServerSuite(master_url, zk_url, cluster_url) as suite:
    ...     suite.open()
    ...     harness = suite.harness
    ...     harness.wait_for_event("deployment_success")
"""

from itharness.exceptions import (
    CleanupAssertionError,
    HarnessError,
    ProtocolViolationError,
    ReadinessTimeoutError,
    ServerSpawnError,
    WaitTimeoutError,
)
from itharness.harness import IntegrationHarness, ServerSuite
from itharness.path_id import PathId
from itharness.supervisor import ServerSupervisor

__version__ = "0.1.0"

__all__ = [
    "CleanupAssertionError",
    "HarnessError",
    "IntegrationHarness",
    "PathId",
    "ProtocolViolationError",
    "ReadinessTimeoutError",
    "ServerSpawnError",
    "ServerSuite",
    "ServerSupervisor",
    "WaitTimeoutError",
    "__version__",
]
