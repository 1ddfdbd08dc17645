"""Protocol definitions for the APIs the harness drives.

This module defines the interfaces that decouple the harness from the
HTTP clients, so tests can substitute in-memory fakes:
- ServerApi: The server's event subscription, workload and task API
- ClusterApi: The resource cluster's state API
"""

from typing import Protocol, runtime_checkable

from itharness.path_id import PathId
from itharness.workloads import AppDefinition

from ._models import ClusterState, DeploymentResult, RestResult, SubscriberList, Task


@runtime_checkable
class ServerApi(Protocol):
    """Protocol for the server under test.

    Paths are interpreted relative to the client's base group where the
    method name says so.
    """

    @property
    def base_path(self) -> PathId:
        """Return the group every test workload lives in."""
        ...

    def subscribe(self, callback_url: str) -> RestResult[None]:
        """Subscribe ``callback_url`` to the event bus."""
        ...

    def unsubscribe(self, callback_url: str) -> RestResult[None]:
        """Remove ``callback_url`` from the event bus."""
        ...

    def list_subscribers(self) -> RestResult[SubscriberList]:
        """Return the subscribed callback URLs."""
        ...

    def create_app(self, app: AppDefinition) -> RestResult[AppDefinition | None]:
        """Create a workload."""
        ...

    def delete_group(self, path: PathId, *, force: bool = False) -> RestResult[DeploymentResult | None]:
        """Delete a group and everything below it.

        Returns:
            The deployment started by the deletion. Its value is None when
            the group did not exist (status 404).
        """
        ...

    def list_apps_in_base_group(self) -> RestResult[list[AppDefinition]]:
        """Return the workloads below the base group."""
        ...

    def list_groups_in_base_group(self) -> RestResult[list[str]]:
        """Return the ids of the groups directly below the base group."""
        ...

    def tasks(self, app_id: PathId) -> RestResult[list[Task]]:
        """Return the instances of a workload."""
        ...


@runtime_checkable
class ClusterApi(Protocol):
    """Protocol for the resource cluster behind the server."""

    def state(self) -> RestResult[ClusterState]:
        """Return the current agent resource usage."""
        ...
