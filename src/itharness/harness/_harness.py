"""Per-suite wiring of the callback endpoint, the server and the cluster.

The harness owns the event queue and health registry, starts the callback
endpoint on first use, builds workload proxies that call back into it,
and resets the cluster to a clean slate between tests.
"""

import threading
import uuid
from collections.abc import Callable, Iterable
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Self, final

import httpx

from itharness.api import ClusterApi, DeploymentResult, RestResult, ServerApi, Task
from itharness.callback import CallbackEndpoint
from itharness.config import HarnessSettings
from itharness.events import CallbackEvent, EventPredicate, EventQueue
from itharness.exceptions import CleanupAssertionError, HarnessError, ServerApiError, WaitTimeoutError
from itharness.health import DEFINITION_PORT, HealthCheckRegistry, HealthProbe
from itharness.path_id import PathId
from itharness.utils import logger_from_config
from itharness.wait import wait_for, wait_until
from itharness.workloads import (
    AppDefinition,
    app_proxy,
    docker_app_proxy,
    proxy_invocation,
    write_proxy_script,
)

from ._reaper import reap_proxies

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

DEPLOYMENT_SUCCESS = "deployment_success"
STATUS_UPDATE = "status_update_event"


@final
class IntegrationHarness:
    """Test-suite harness around one server under test.

    Attributes:
        server: API of the server under test.
        cluster: API of the resource cluster behind it.
        settings: Harness settings (timeouts, proxy launch, logging).
        events: Events received from the server's event bus.
        registry: Expected health states answered to workload proxies.
    """

    __slots__ = (
        "_endpoint",
        "_lock",
        "_logger",
        "_proxy_ids",
        "_proxy_scripts",
        "_subscribed_url",
        "callback_host",
        "cluster",
        "events",
        "registry",
        "script_dir",
        "server",
        "settings",
    )

    def __init__(
        self,
        server: ServerApi,
        cluster: ClusterApi,
        *,
        settings: HarnessSettings | None = None,
        callback_host: str = "127.0.0.1",
        script_dir: Path | None = None,
    ) -> None:
        """Initialize the harness. Nothing is started until first use.

        Args:
            server: API of the server under test.
            cluster: API of the resource cluster.
            settings: Harness settings; defaults apply when None.
            callback_host: Interface the callback endpoint listens on.
            script_dir: Where proxy wrapper scripts are written.
        """
        self.server = server
        self.cluster = cluster
        self.settings = settings or HarnessSettings()
        self.callback_host = callback_host
        self.script_dir = script_dir
        self.events = EventQueue()
        self.registry = HealthCheckRegistry()
        self._logger: "FilteringBoundLogger" = logger_from_config("harness", self.settings.logging)
        self._lock = threading.Lock()
        self._endpoint: CallbackEndpoint | None = None
        self._subscribed_url: str | None = None
        self._proxy_ids: list[str] = []
        self._proxy_scripts: list[Path] = []

    # -------------------------------------------------------------------------
    # Callback endpoint
    # -------------------------------------------------------------------------

    @property
    def callback_endpoint(self) -> CallbackEndpoint:
        """Return the callback endpoint, starting and subscribing it on first use."""
        with self._lock:
            if self._endpoint is None:
                endpoint = CallbackEndpoint(
                    self.events,
                    self.registry,
                    host=self.callback_host,
                    logger=self._logger.bind(component="callback"),
                )
                endpoint.start()
                self._endpoint = endpoint
            if self._subscribed_url is None:
                url = self._endpoint.url
                _ = self.server.subscribe(url)
                self._subscribed_url = url
                self._logger.info("listening_for_events", url=url)
            return self._endpoint

    @property
    def callback_port(self) -> int:
        return self.callback_endpoint.port

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    @property
    def base_path(self) -> PathId:
        return self.server.base_path

    def to_test_path(self, path: "str | PathId") -> PathId:
        """Return ``path`` appended to the base group."""
        return self.base_path.append(path)

    def to_root_test_path(self, path: "str | PathId") -> PathId:
        """Return ``path`` appended to the base group, canonicalised."""
        return self.base_path.append(path).canonical()

    # -------------------------------------------------------------------------
    # Workload proxies
    # -------------------------------------------------------------------------

    @property
    def proxy_id(self) -> str:
        """Return the marker put on this harness's proxy command lines."""
        with self._lock:
            if not self._proxy_ids:
                self._proxy_ids.append(str(uuid.uuid4()))
            return self._proxy_ids[0]

    @property
    def proxy_ids(self) -> list[str]:
        with self._lock:
            return list(self._proxy_ids)

    def app_proxy(
        self,
        app_id: PathId,
        version_id: str,
        instances: int,
        *,
        with_health: bool = True,
        dependencies: Iterable[PathId] = (),
    ) -> AppDefinition:
        """Describe a workload running a proxy that asks this harness for its health.

        Args:
            app_id: Workload path.
            version_id: Version the proxy reports in its health queries.
            instances: Number of instances.
            with_health: Attach the default proxy health check.
            dependencies: Workloads that must be deployed first.

        Returns:
            The workload definition.
        """
        invocation = proxy_invocation(self.settings.proxy.interpreter, self.proxy_id)
        script = write_proxy_script(invocation, self.script_dir)
        self._proxy_scripts.append(script)
        return app_proxy(
            app_id,
            version_id,
            instances,
            script=script,
            callback_port=self.callback_port,
            with_health=with_health,
            dependencies=dependencies,
        )

    def docker_app_proxy(
        self,
        app_id: PathId,
        version_id: str,
        instances: int,
        *,
        with_health: bool = True,
        dependencies: Iterable[PathId] = (),
    ) -> AppDefinition:
        """Describe a workload running the proxy inside the build image."""
        return docker_app_proxy(
            app_id,
            version_id,
            instances,
            proxy_id=self.proxy_id,
            callback_port=self.callback_port,
            proxy=self.settings.proxy,
            with_health=with_health,
            dependencies=dependencies,
        )

    def app_proxy_check(self, app_id: PathId, version_id: str, healthy: bool) -> HealthProbe:  # noqa: FBT001
        """Register the health every instance of a workload version reports.

        Args:
            app_id: Workload path.
            version_id: Workload version.
            healthy: State to report until the probe is changed.

        Returns:
            The definition-level probe; set its ``healthy`` to change the answer.
        """
        return self.registry.register(app_id, version_id, DEFINITION_PORT, healthy=healthy)

    # -------------------------------------------------------------------------
    # Waits
    # -------------------------------------------------------------------------

    def _wait_timeout(self, timeout: float | None) -> float:
        return self.settings.timeouts.wait if timeout is None else timeout

    def wait_for_tasks(self, app_id: PathId, num: int, timeout: float | None = None) -> list[Task]:
        """Block until exactly ``num`` instances of ``app_id`` are launched.

        Failed task queries count as no instances.

        Raises:
            WaitTimeoutError: If the count is not reached in time.
        """

        def launched() -> list[Task] | None:
            try:
                tasks = [task for task in self.server.tasks(app_id).value if task.launched]
            except (ServerApiError, httpx.HTTPError) as e:
                self._logger.debug("task_query_failed", app_id=str(app_id), error=str(e))
                tasks = []
            return tasks if len(tasks) == num else None

        return wait_for(f"{num} tasks to launch", self._wait_timeout(timeout), launched)

    def wait_for_health_check(self, probe: HealthProbe, timeout: float | None = None) -> None:
        """Block until a workload proxy has queried ``probe``.

        Raises:
            WaitTimeoutError: If the probe is not queried in time.
        """
        wait_until(
            "health check to get queried",
            self._wait_timeout(timeout),
            lambda: probe.pinged,
        )

    def wait_for_event_matching(
        self,
        description: str,
        fn: EventPredicate,
        timeout: float | None = None,
    ) -> CallbackEvent:
        """Block until an event satisfying ``fn`` arrives; earlier events are discarded.

        Raises:
            WaitTimeoutError: If no matching event arrives in time.
        """
        return self.events.wait_for_matching(description, fn, self._wait_timeout(timeout))

    def wait_for_event_with(
        self,
        kind: str,
        fn: EventPredicate,
        timeout: float | None = None,
    ) -> CallbackEvent:
        """Block until an event of ``kind`` satisfying ``fn`` arrives.

        Raises:
            WaitTimeoutError: If no matching event arrives in time.
        """
        return self.events.wait_for_event(kind, fn, self._wait_timeout(timeout))

    def wait_for_event(self, kind: str, timeout: float | None = None) -> CallbackEvent:
        """Block until an event of ``kind`` arrives.

        Args:
            kind: Event type.
            timeout: Budget in seconds; the configured event timeout when None.

        Raises:
            WaitTimeoutError: If no event of ``kind`` arrives in time.
        """
        budget = self.settings.timeouts.event if timeout is None else timeout
        return self.events.wait_for_event(kind, None, budget)

    def wait_for_events(self, *kinds: str, timeout: float | None = None) -> dict[str, list[CallbackEvent]]:
        """Block until one event per kind has arrived, in any order.

        Raises:
            WaitTimeoutError: If the kinds are not all matched in time.
        """
        return self.events.wait_for_events(kinds, self._wait_timeout(timeout))

    def wait_for_deployment_id(self, deployment_id: str, timeout: float | None = None) -> CallbackEvent:
        """Block until the deployment ``deployment_id`` succeeds."""
        return self.wait_for_event_with(
            DEPLOYMENT_SUCCESS,
            lambda event: event.id == deployment_id,
            timeout,
        )

    def wait_for_change(
        self,
        change: RestResult[DeploymentResult | None],
        timeout: float | None = None,
    ) -> CallbackEvent:
        """Block until the deployment started by ``change`` succeeds.

        Raises:
            HarnessError: If ``change`` did not start a deployment.
            WaitTimeoutError: If the deployment does not succeed in time.
        """
        if change.value is None:
            msg = f"Change answered {change.status_code} without a deployment"
            raise HarnessError(msg)
        return self.wait_for_deployment_id(change.value.deployment_id, timeout)

    def wait_for_status_updates(self, *kinds: str, timeout: float | None = None) -> list[CallbackEvent]:
        """Block until a status update arrives for each task status, in order."""
        received: list[CallbackEvent] = []
        for kind in kinds:
            received.append(
                self.wait_for_event_with(
                    STATUS_UPDATE,
                    _has_task_status(kind),
                    timeout,
                )
            )
        return received

    # -------------------------------------------------------------------------
    # Cleanup
    # -------------------------------------------------------------------------

    def _cluster_is_empty(self) -> bool:
        state = self.cluster.state().value
        for agent in state.agents:
            if not agent.empty:
                self._logger.info(
                    "waiting_for_clean_slate",
                    agent=agent.id,
                    used_resources=agent.used_resources,
                    reserved_resources=agent.reserved_resources_by_role,
                )
        return state.empty

    def clean_up(self, *, with_subscribers: bool = False) -> None:
        """Reset the server and cluster to a clean slate.

        Deletes the base group, waits for the cluster to reclaim every
        resource, asserts nothing is left in the base group, forgets all
        events and health probes, and kills leftover proxies.

        Args:
            with_subscribers: Also remove every event bus subscriber.

        Raises:
            CleanupAssertionError: If resources are not reclaimed in time or
                workloads remain.
            ProtocolViolationError: If the callback endpoint received a
                request it could not route.
        """
        self._logger.info("clean_up_started")
        self.events.clear()

        deletion = self.server.delete_group(self.base_path, force=True)
        if deletion.status_code != 404:  # noqa: PLR2004
            _ = self.wait_for_change(deletion)

        try:
            wait_until("clean slate in cluster", self.settings.timeouts.cleanup, self._cluster_is_empty)
        except WaitTimeoutError as e:
            state = self.cluster.state()
            msg = f"Cluster resources were not reclaimed: {e}"
            raise CleanupAssertionError(msg, detail=state.entity_pretty_json()) from e

        apps = self.server.list_apps_in_base_group()
        if apps.value:
            msg = f"apps weren't empty: {[app.id for app in apps.value]}"
            raise CleanupAssertionError(msg, detail=apps.entity_pretty_json())
        groups = self.server.list_groups_in_base_group()
        if groups.value:
            msg = f"groups weren't empty: {groups.value}"
            raise CleanupAssertionError(msg, detail=groups.entity_pretty_json())

        self.events.clear()
        self.registry.clear()
        _ = reap_proxies(self.proxy_ids, self._logger)

        if with_subscribers:
            for url in self.server.list_subscribers().value.callback_urls:
                _ = self.server.unsubscribe(url)
            with self._lock:
                self._subscribed_url = None

        if self._endpoint is not None:
            self._endpoint.raise_for_violations()
        self._logger.info("clean_up_finished")

    def close(self) -> None:
        """Unsubscribe, stop the callback endpoint and kill leftover proxies.

        Teardown failures are logged. Protocol violations recorded by the
        endpoint are raised once teardown is complete.

        Raises:
            ProtocolViolationError: If the callback endpoint received a
                request it could not route.
        """
        with self._lock:
            endpoint, self._endpoint = self._endpoint, None
            subscribed_url, self._subscribed_url = self._subscribed_url, None

        if subscribed_url is not None:
            try:
                _ = self.server.unsubscribe(subscribed_url)
            except (ServerApiError, httpx.HTTPError) as e:
                self._logger.warning("unsubscribe_failed", url=subscribed_url, error=str(e))
        if endpoint is not None:
            endpoint.stop()

        _ = reap_proxies(self.proxy_ids, self._logger)
        for script in self._proxy_scripts:
            try:
                script.unlink(missing_ok=True)
            except OSError as e:
                self._logger.warning("proxy_script_cleanup_failed", path=str(script), error=str(e))
        self._proxy_scripts.clear()

        if endpoint is not None:
            endpoint.raise_for_violations()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


def _has_task_status(kind: str) -> Callable[[CallbackEvent], bool]:
    return lambda event: event.task_status == kind
