"""Shared test fixtures for itharness tests."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from itharness.api import FakeClusterApi, FakeServerApi
from itharness.config import HarnessSettings, load_settings
from itharness.events import EventQueue
from itharness.harness import IntegrationHarness
from itharness.health import HealthCheckRegistry


@pytest.fixture
def events() -> EventQueue:
    return EventQueue()


@pytest.fixture
def registry() -> HealthCheckRegistry:
    return HealthCheckRegistry()


@pytest.fixture
def settings(tmp_path: Path) -> HarnessSettings:
    """Settings with short budgets, logging to a file under tmp_path."""
    return load_settings(
        overrides={
            "logging": {"level": "debug", "file": str(tmp_path / "harness.log")},
            "timeouts": {"wait": 2.0, "event": 2.0, "cleanup": 2.0, "server_start": 30.0},
        },
        environ={},
    )


@pytest.fixture
def fake_server() -> FakeServerApi:
    return FakeServerApi("/test")


@pytest.fixture
def fake_cluster() -> FakeClusterApi:
    return FakeClusterApi()


@pytest.fixture
def harness(
    fake_server: FakeServerApi,
    fake_cluster: FakeClusterApi,
    settings: HarnessSettings,
    tmp_path: Path,
) -> Iterator[IntegrationHarness]:
    """Harness over in-memory APIs; deployment events flow into its queue."""
    harness = IntegrationHarness(
        fake_server,
        fake_cluster,
        settings=settings,
        script_dir=tmp_path,
    )
    fake_server.events = harness.events
    yield harness
    harness.close()
