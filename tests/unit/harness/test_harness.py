import threading
import time

import pytest
from pytest_mock import MockerFixture

from itharness.api import (
    AgentState,
    ClusterState,
    DeploymentResult,
    FakeClusterApi,
    FakeServerApi,
    RestResult,
    Task,
)
from itharness.events import CallbackEvent
from itharness.exceptions import CleanupAssertionError, HarnessError, WaitTimeoutError
from itharness.harness import DEPLOYMENT_SUCCESS, STATUS_UPDATE, IntegrationHarness
from itharness.path_id import PathId
from itharness.workloads import AppDefinition

BUSY = ClusterState(agents=[AgentState(id="agent-1", used_resources={"cpus": 0.5})])


def push_later(harness: IntegrationHarness, event: CallbackEvent, delay: float = 0.05) -> threading.Thread:
    def push() -> None:
        time.sleep(delay)
        harness.events.push(event)

    thread = threading.Thread(target=push, daemon=True)
    thread.start()
    return thread


class TestPaths:
    def test_base_path_comes_from_server(self, harness: IntegrationHarness) -> None:
        assert harness.base_path == PathId.parse("/test")

    def test_to_test_path(self, harness: IntegrationHarness) -> None:
        assert str(harness.to_test_path("group/app")) == "/test/group/app"

    def test_to_root_test_path_canonicalises(self, harness: IntegrationHarness) -> None:
        assert str(harness.to_root_test_path("group/../app")) == "/test/app"


class TestProxyIds:
    def test_one_id_per_harness(self, harness: IntegrationHarness) -> None:
        assert harness.proxy_ids == []

        first = harness.proxy_id

        assert harness.proxy_id == first
        assert harness.proxy_ids == [first]

    def test_app_proxy_check_registers_definition_probe(self, harness: IntegrationHarness) -> None:
        probe = harness.app_proxy_check(PathId.parse("/test/app"), "v1", False)

        assert probe.is_definition
        assert harness.registry.resolve("/test/app", "v1", 31000) is False


class TestWaits:
    def test_wait_for_event(self, harness: IntegrationHarness) -> None:
        thread = push_later(harness, CallbackEvent("app_terminated_event"))

        event = harness.wait_for_event("app_terminated_event")
        thread.join()

        assert event.event_type == "app_terminated_event"

    def test_wait_for_event_times_out(self, harness: IntegrationHarness) -> None:
        with pytest.raises(WaitTimeoutError) as exc_info:
            _ = harness.wait_for_event("never", timeout=0.05)

        assert exc_info.value.timeout == 0.05

    def test_wait_for_events(self, harness: IntegrationHarness) -> None:
        harness.events.push(CallbackEvent("b"))
        harness.events.push(CallbackEvent("a"))

        received = harness.wait_for_events("a", "b", timeout=0.5)

        assert set(received) == {"a", "b"}

    def test_wait_for_event_matching_discards_earlier(self, harness: IntegrationHarness) -> None:
        harness.events.push(CallbackEvent("noise"))
        harness.events.push(CallbackEvent("signal", {"n": 1}))
        harness.events.push(CallbackEvent("after"))

        event = harness.wait_for_event_matching("signal", lambda e: e.get("n") == 1)

        assert event.event_type == "signal"
        assert [e.event_type for e in harness.events.snapshot()] == ["after"]

    def test_wait_for_change(self, harness: IntegrationHarness, fake_server: FakeServerApi) -> None:
        change = fake_server.create_app(AppDefinition(id="/test/app"))
        assert change.status_code == 201
        deployment = fake_server.delete_group(PathId.parse("/test"), force=True)

        event = harness.wait_for_change(deployment, timeout=0.5)

        assert event.event_type == DEPLOYMENT_SUCCESS
        assert deployment.value is not None
        assert event.id == deployment.value.deployment_id

    def test_wait_for_change_without_deployment(self, harness: IntegrationHarness) -> None:
        change: RestResult[DeploymentResult | None] = RestResult(404, None)

        with pytest.raises(HarnessError, match="404"):
            _ = harness.wait_for_change(change)

    def test_wait_for_deployment_id_skips_other_deployments(self, harness: IntegrationHarness) -> None:
        harness.events.push(CallbackEvent(DEPLOYMENT_SUCCESS, {"id": "other"}))
        harness.events.push(CallbackEvent(DEPLOYMENT_SUCCESS, {"id": "mine"}))

        event = harness.wait_for_deployment_id("mine", timeout=0.5)

        assert event.id == "mine"

    def test_wait_for_status_updates_in_order(self, harness: IntegrationHarness) -> None:
        for status in ("TASK_STAGING", "TASK_RUNNING", "TASK_KILLED"):
            harness.events.push(CallbackEvent(STATUS_UPDATE, {"taskStatus": status}))

        received = harness.wait_for_status_updates("TASK_RUNNING", "TASK_KILLED", timeout=0.5)

        assert [event.task_status for event in received] == ["TASK_RUNNING", "TASK_KILLED"]

    def test_wait_for_tasks(self, harness: IntegrationHarness, fake_server: FakeServerApi) -> None:
        app_id = PathId.parse("/test/app")
        fake_server.app_tasks[app_id] = [
            Task(id="t1", started_at="now"),
            Task(id="t2", started_at="now"),
            Task(id="t3"),
        ]

        tasks = harness.wait_for_tasks(app_id, 2, timeout=0.5)

        assert [task.id for task in tasks] == ["t1", "t2"]

    def test_wait_for_tasks_times_out_on_wrong_count(
        self, harness: IntegrationHarness, fake_server: FakeServerApi
    ) -> None:
        app_id = PathId.parse("/test/app")
        fake_server.app_tasks[app_id] = [Task(id="t1", started_at="now")]

        with pytest.raises(WaitTimeoutError, match="2 tasks to launch"):
            _ = harness.wait_for_tasks(app_id, 2, timeout=0.1)

    def test_wait_for_health_check(self, harness: IntegrationHarness) -> None:
        probe = harness.app_proxy_check(PathId.parse("/test/app"), "v1", True)

        def ask() -> None:
            time.sleep(0.05)
            _ = harness.registry.resolve("/test/app", "v1", 31000)

        thread = threading.Thread(target=ask, daemon=True)
        thread.start()
        harness.wait_for_health_check(probe, timeout=1.0)
        thread.join()

        assert probe.pinged


class TestCleanUp:
    def test_deletes_base_group_and_forgets_state(
        self, harness: IntegrationHarness, fake_server: FakeServerApi
    ) -> None:
        _ = fake_server.create_app(AppDefinition(id="/test/app"))
        harness.events.push(CallbackEvent("stale"))
        _ = harness.app_proxy_check(PathId.parse("/test/app"), "v1", False)

        harness.clean_up()

        assert fake_server.deleted_groups == [PathId.parse("/test")]
        assert fake_server.apps == {}
        assert len(harness.events) == 0
        assert len(harness.registry) == 0

    def test_missing_base_group_is_fine(
        self, harness: IntegrationHarness, fake_server: FakeServerApi
    ) -> None:
        harness.clean_up()

        assert fake_server.deleted_groups == [PathId.parse("/test")]

    def test_waits_for_cluster_to_empty(self, harness: IntegrationHarness) -> None:
        harness.cluster = FakeClusterApi([BUSY, BUSY, ClusterState()])

        harness.clean_up()

        assert isinstance(harness.cluster, FakeClusterApi)
        assert harness.cluster.calls == 3

    def test_busy_cluster_fails_cleanup(self, harness: IntegrationHarness) -> None:
        harness.cluster = FakeClusterApi([BUSY])

        with pytest.raises(CleanupAssertionError, match="not reclaimed") as exc_info:
            harness.clean_up()

        assert exc_info.value.detail is not None
        assert "agent-1" in exc_info.value.detail

    def test_leftover_apps_fail_cleanup(
        self, harness: IntegrationHarness, fake_server: FakeServerApi
    ) -> None:
        _ = fake_server.create_app(AppDefinition(id="/test/app"))
        fake_server.groups.clear()

        with pytest.raises(CleanupAssertionError, match="apps weren't empty"):
            harness.clean_up()

    def test_with_subscribers_removes_all(
        self, harness: IntegrationHarness, fake_server: FakeServerApi
    ) -> None:
        _ = fake_server.subscribe("http://elsewhere:1")

        harness.clean_up(with_subscribers=True)

        assert fake_server.subscribers == []

    def test_reaps_proxies_by_marker(
        self, harness: IntegrationHarness, mocker: MockerFixture
    ) -> None:
        reap = mocker.patch("itharness.harness._harness.reap_proxies", return_value=[])
        marker = harness.proxy_id

        harness.clean_up()

        assert reap.call_args.args[0] == [marker]
