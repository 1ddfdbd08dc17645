import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from itharness.config import RuntimeConfig
from itharness.supervisor import ServerSupervisor

STUB_SERVER = Path(__file__).parent.parent / "fixtures" / "stub_server.py"


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def stub_runtime() -> RuntimeConfig:
    """Runtime launching the stub server with the current interpreter."""
    return RuntimeConfig(executable=sys.executable, options=("-u",), entry_point=str(STUB_SERVER))


SupervisorFactory = Callable[..., ServerSupervisor]


@pytest.fixture
def make_supervisor(stub_runtime: RuntimeConfig) -> Iterator[SupervisorFactory]:
    """Return a factory for stub supervisors that are closed after the test."""
    created: list[ServerSupervisor] = []

    def _make(**kwargs: Any) -> ServerSupervisor:  # pyright: ignore[reportExplicitAny,reportAny]
        kwargs.setdefault("auto_start", False)
        kwargs.setdefault("runtime", stub_runtime)
        supervisor = ServerSupervisor("127.0.0.1:5050", "zk://localhost:2181/test", **kwargs)
        created.append(supervisor)
        return supervisor

    yield _make

    for supervisor in created:
        supervisor.close()
