"""Last-resort cleanup of workload proxies the server failed to stop."""

import os
from collections.abc import Collection
from typing import TYPE_CHECKING

import psutil

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

REAP_TIMEOUT = 5.0


def find_proxy_processes(markers: Collection[str]) -> list[psutil.Process]:
    """Return processes whose command line contains any of ``markers``.

    The calling process is never included.

    Args:
        markers: Proxy ids placed on proxy command lines.

    Returns:
        Matching processes.
    """
    if not markers:
        return []

    own_pid = os.getpid()
    matches: list[psutil.Process] = []
    for proc in psutil.process_iter(["pid", "cmdline"]):
        try:
            if proc.pid == own_pid:
                continue
            cmdline_value = proc.info.get("cmdline")  # pyright: ignore[reportAny]
            if not isinstance(cmdline_value, list):
                continue
            cmdline = " ".join(str(arg) for arg in cmdline_value)  # pyright: ignore[reportUnknownVariableType,reportUnknownArgumentType]
            if any(marker in cmdline for marker in markers):
                matches.append(proc)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return matches


def reap_proxies(markers: Collection[str], logger: "FilteringBoundLogger") -> list[int]:
    """Kill every process carrying one of ``markers`` on its command line.

    Processes that exit or deny access while being killed are logged and
    skipped.

    Args:
        markers: Proxy ids placed on proxy command lines.
        logger: Logger for killed and skipped processes.

    Returns:
        PIDs that were killed.
    """
    killed: list[psutil.Process] = []
    for proc in find_proxy_processes(markers):
        try:
            proc.kill()
            killed.append(proc)
        except psutil.NoSuchProcess:
            logger.debug("proxy_already_exited", pid=proc.pid)
        except psutil.AccessDenied:
            logger.warning("proxy_kill_denied", pid=proc.pid)

    pids = [proc.pid for proc in killed]
    if killed:
        _, alive = psutil.wait_procs(killed, timeout=REAP_TIMEOUT)
        logger.info("proxies_reaped", pids=pids, still_alive=[proc.pid for proc in alive])
    return pids
