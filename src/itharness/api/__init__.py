"""Clients for the server under test and the resource cluster behind it.

Key Components:
    - ServerApi / ClusterApi: Protocols the harness is written against
    - ServerClient / ClusterClient: httpx implementations
    - FakeServerApi / FakeClusterApi: In-memory implementations for tests
    - RestResult: Typed value with its HTTP status and raw body
"""

from ._client import DEFAULT_TIMEOUT, ClusterClient, ServerClient
from ._fake import FakeClusterApi, FakeServerApi
from ._models import (
    AgentState,
    ClusterState,
    DeploymentResult,
    RestResult,
    SubscriberList,
    Task,
)
from ._protocol import ClusterApi, ServerApi

__all__ = [
    "DEFAULT_TIMEOUT",
    "AgentState",
    "ClusterApi",
    "ClusterClient",
    "ClusterState",
    "DeploymentResult",
    "FakeClusterApi",
    "FakeServerApi",
    "RestResult",
    "ServerApi",
    "ServerClient",
    "SubscriberList",
    "Task",
]
