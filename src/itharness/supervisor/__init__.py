"""Supervision of server processes under test.

Key Components:
    - ServerState: Lifecycle state enumeration
    - ServerSettings: Ordered ``--key value`` server settings
    - ServerSupervisor: Spawns a server and converges on its readiness
    - start_all: Starts several supervisors concurrently

Example:
    >>> from itharness.supervisor import ServerSupervisor
    >>> with ServerSupervisor(master_url, zk_url, auto_start=False) as server:
    ...     server.start(timeout=60)
"""

from ._cluster import start_all
from ._models import ServerSettings, ServerState
from ._supervisor import READINESS_PATH, ServerSupervisor

__all__ = [
    "READINESS_PATH",
    "ServerSettings",
    "ServerState",
    "ServerSupervisor",
    "start_all",
]
