"""In-memory stand-ins for the server and cluster APIs."""

import uuid
from collections.abc import Iterable
from typing import final

from itharness.events import CallbackEvent, EventQueue
from itharness.path_id import PathId
from itharness.workloads import AppDefinition

from ._models import ClusterState, DeploymentResult, RestResult, SubscriberList, Task


@final
class FakeServerApi:
    """Server API backed by dictionaries.

    When given an EventQueue, every change that starts a deployment pushes
    the matching ``deployment_success`` event, as a live server's event bus
    would.

    Attributes:
        base_path: Group every test workload lives in.
        subscribers: Subscribed callback URLs, in subscription order.
        apps: Workloads keyed by absolute id.
        groups: Ids of existing groups.
        app_tasks: Instances reported per workload id.
        deleted_groups: Paths passed to ``delete_group``, in call order.
    """

    def __init__(self, base_path: "str | PathId" = "/", *, events: EventQueue | None = None) -> None:
        self.base_path = PathId.parse(base_path).to_root_path()
        self.events = events
        self.subscribers: list[str] = []
        self.apps: dict[PathId, AppDefinition] = {}
        self.groups: set[PathId] = set()
        self.app_tasks: dict[PathId, list[Task]] = {}
        self.deleted_groups: list[PathId] = []

    def _deploy(self) -> DeploymentResult:
        result = DeploymentResult(version="1", deployment_id=str(uuid.uuid4()))
        if self.events is not None:
            self.events.push(
                CallbackEvent("deployment_success", {"id": result.deployment_id})
            )
        return result

    def subscribe(self, callback_url: str) -> RestResult[None]:
        if callback_url not in self.subscribers:
            self.subscribers.append(callback_url)
        return RestResult(200, None)

    def unsubscribe(self, callback_url: str) -> RestResult[None]:
        if callback_url in self.subscribers:
            self.subscribers.remove(callback_url)
        return RestResult(200, None)

    def list_subscribers(self) -> RestResult[SubscriberList]:
        return RestResult(200, SubscriberList(callback_urls=list(self.subscribers)))

    def create_app(self, app: AppDefinition) -> RestResult[AppDefinition | None]:
        app_id = PathId.parse(app.id).to_root_path()
        self.apps[app_id] = app
        parent = app_id.parent
        while not parent.is_root:
            self.groups.add(parent)
            parent = parent.parent
        _ = self._deploy()
        return RestResult(201, app)

    def delete_group(
        self, path: PathId, *, force: bool = False
    ) -> RestResult[DeploymentResult | None]:
        path = path.to_root_path()
        self.deleted_groups.append(path)
        exists = path.is_root or path in self.groups
        if not exists:
            return RestResult(404, None)

        self.apps = {k: v for k, v in self.apps.items() if not k.is_within(path)}
        self.app_tasks = {k: v for k, v in self.app_tasks.items() if not k.is_within(path)}
        self.groups = {g for g in self.groups if not g.is_within(path)}
        return RestResult(200, self._deploy())

    def list_apps_in_base_group(self) -> RestResult[list[AppDefinition]]:
        apps = [app for app_id, app in self.apps.items() if app_id.is_within(self.base_path)]
        return RestResult(200, apps, {"apps": [app.to_payload() for app in apps]})

    def list_groups_in_base_group(self) -> RestResult[list[str]]:
        depth = len(self.base_path.parts) + 1
        groups = sorted(
            str(group)
            for group in self.groups
            if group.is_within(self.base_path) and len(group.parts) == depth
        )
        body = {"id": str(self.base_path), "groups": [{"id": group} for group in groups]}
        return RestResult(200, groups, body)

    def tasks(self, app_id: PathId) -> RestResult[list[Task]]:
        return RestResult(200, list(self.app_tasks.get(app_id.to_root_path(), [])))


@final
class FakeClusterApi:
    """Cluster API replaying a scripted sequence of states.

    Each ``state()`` call returns the next scripted state; the last one
    repeats forever.
    """

    def __init__(self, states: Iterable[ClusterState] = ()) -> None:
        self._states: list[ClusterState] = list(states) or [ClusterState()]
        self.calls = 0

    def state(self) -> RestResult[ClusterState]:
        index = min(self.calls, len(self._states) - 1)
        self.calls += 1
        state = self._states[index]
        return RestResult(200, state, state.model_dump(by_alias=True))
