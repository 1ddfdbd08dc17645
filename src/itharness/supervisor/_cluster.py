"""Concurrent start of several supervised servers."""

from collections.abc import Sequence
from functools import partial

import anyio
import anyio.to_thread

from ._supervisor import ServerSupervisor


async def _start_all(supervisors: Sequence[ServerSupervisor], timeout: float | None) -> None:
    async with anyio.create_task_group() as tg:
        for supervisor in supervisors:
            tg.start_soon(
                partial(anyio.to_thread.run_sync, supervisor.start, timeout),
                name=supervisor.name,
            )


def start_all(supervisors: Sequence[ServerSupervisor], timeout: float | None = None) -> None:
    """Start several servers concurrently, each in a worker thread.

    Every start runs to completion; already running servers are left as
    they are.

    Args:
        supervisors: Servers to start.
        timeout: Readiness budget applied to each server.

    Raises:
        ServerSpawnError: If any server fails to spawn.
        ReadinessTimeoutError: If any server is not ready in time.
    """
    if not supervisors:
        return
    try:
        anyio.run(_start_all, supervisors, timeout)
    except ExceptionGroup as group:
        raise group.exceptions[0] from group
