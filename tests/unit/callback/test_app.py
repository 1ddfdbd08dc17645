import pytest
from fastapi.testclient import TestClient

from itharness.callback import create_callback_app, parse_health_path
from itharness.events import EventQueue
from itharness.exceptions import ProtocolViolationError
from itharness.health import HealthCheckRegistry
from itharness.path_id import PathId
from itharness.utils import create_harness_logger


@pytest.fixture
def violations() -> list[ProtocolViolationError]:
    return []


@pytest.fixture
def client(
    events: EventQueue,
    registry: HealthCheckRegistry,
    violations: list[ProtocolViolationError],
) -> TestClient:
    app = create_callback_app(
        events,
        registry,
        logger=create_harness_logger("callback-test"),
        on_violation=violations.append,
    )
    return TestClient(app, raise_server_exceptions=False)


class TestParseHealthPath:
    def test_nested_workload(self) -> None:
        assert parse_health_path("test/group/app/v1/31000") == (
            PathId.parse("/test/group/app"),
            "v1",
            31000,
        )

    def test_version_and_port_only_maps_to_root(self) -> None:
        assert parse_health_path("v1/31000") == (PathId.root(), "v1", 31000)

    def test_missing_suffix(self) -> None:
        with pytest.raises(ProtocolViolationError, match="no <version>/<port>"):
            _ = parse_health_path("31000")

    def test_non_numeric_port(self) -> None:
        with pytest.raises(ProtocolViolationError, match="non-numeric port") as exc_info:
            _ = parse_health_path("app/v1/http")

        assert exc_info.value.path == "/health/app/v1/http"


class TestReceiveEvent:
    def test_records_event(self, client: TestClient, events: EventQueue) -> None:
        response = client.post("/", json={"eventType": "deployment_success", "id": "d1"})

        assert response.status_code == 200
        assert response.json() == {"event_type": "deployment_success"}
        [event] = events.snapshot()
        assert event.event_type == "deployment_success"
        assert event.id == "d1"

    def test_numeric_event_type_is_stringified(self, client: TestClient, events: EventQueue) -> None:
        _ = client.post("/", json={"eventType": 7})

        assert [e.event_type for e in events.snapshot()] == ["7"]

    def test_missing_event_type_is_unknown(self, client: TestClient, events: EventQueue) -> None:
        _ = client.post("/", json={"id": "d1"})

        [event] = events.snapshot()
        assert event.event_type == "unknown"
        assert event.id == "d1"

    @pytest.mark.parametrize("content", [b"[1, 2]", b"not json", b""])
    def test_non_object_body_is_unknown(
        self, client: TestClient, events: EventQueue, content: bytes
    ) -> None:
        response = client.post("/", content=content)

        assert response.status_code == 200
        [event] = events.snapshot()
        assert event.event_type == "unknown"
        assert dict(event.payload) == {}

    def test_preserves_arrival_order(self, client: TestClient, events: EventQueue) -> None:
        for kind in ("a", "b", "c"):
            _ = client.post("/", json={"eventType": kind})

        assert [e.event_type for e in events.snapshot()] == ["a", "b", "c"]


class TestAnswerHealth:
    def test_unregistered_workload_is_healthy(self, client: TestClient) -> None:
        response = client.get("/health/test/app/v1/31000")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    def test_unhealthy_probe_answers_500(
        self, client: TestClient, registry: HealthCheckRegistry
    ) -> None:
        probe = registry.register("/test/app", "v1", healthy=False)

        response = client.get("/health/test/app/v1/31000")

        assert response.status_code == 500
        assert response.json() == {"status": "unhealthy"}
        assert probe.pinged

    def test_toggling_probe(self, client: TestClient, registry: HealthCheckRegistry) -> None:
        probe = registry.register("/test/app", "v1", 31000, healthy=False)
        assert client.get("/health/test/app/v1/31000").status_code == 500

        probe.healthy = True

        assert client.get("/health/test/app/v1/31000").status_code == 200

    def test_malformed_port_is_a_violation(
        self, client: TestClient, violations: list[ProtocolViolationError]
    ) -> None:
        response = client.get("/health/test/app/v1/port")

        assert response.status_code == 500
        assert len(violations) == 1


class TestUnmatchedRequests:
    def test_unmatched_get_is_a_violation(
        self, client: TestClient, violations: list[ProtocolViolationError]
    ) -> None:
        response = client.get("/v2/apps")

        assert response.status_code == 500
        assert "/v2/apps was unmatched" in response.json()["detail"]
        [violation] = violations
        assert violation.method == "GET"
        assert violation.path == "/v2/apps"

    def test_violation_does_not_record_event(
        self, client: TestClient, events: EventQueue
    ) -> None:
        _ = client.get("/anything")

        assert len(events) == 0
