"""Builders for workload proxy definitions.

A workload proxy is a tiny HTTP service (``itharness proxy``) that asks the
harness's callback endpoint whether it should report itself healthy. The
builders here only describe the workload; launching it is up to the server.
"""

import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from itharness.config import ProxyConfig
from itharness.path_id import PathId

from ._models import (
    AppDefinition,
    Container,
    DockerInfo,
    DockerNetwork,
    DockerVolume,
    HealthCheckDefinition,
    Resources,
)

PROXY_RESOURCES = Resources(cpus=0.5, mem=128.0)
BUILD_IMAGE = "marathon-buildbase"
DOCKER_INTERPRETER = "python3"


def proxy_health_checks() -> list[HealthCheckDefinition]:
    """Return the health checks workload proxies are deployed with."""
    return [HealthCheckDefinition()]


def proxy_invocation(interpreter: str, proxy_id: str) -> str:
    """Return the shell command that launches a workload proxy.

    ``proxy_id`` appears on the proxy's command line so leftover proxies
    can be found and killed.
    """
    return f"{interpreter} -m itharness proxy --proxy-id {proxy_id}"


def write_proxy_script(invocation: str, directory: Path | None = None) -> Path:
    """Write an executable shell wrapper that execs ``invocation``.

    Args:
        invocation: Command line prefix; the wrapper appends its own arguments.
        directory: Where to create the script; the system temp dir when None.

    Returns:
        Path of the script.
    """
    handle, name = tempfile.mkstemp(prefix="app-proxy-", suffix=".sh", dir=directory)
    with os.fdopen(handle, "w", encoding="utf-8") as script:
        _ = script.write(f'#!/bin/sh\nset -x\nexec {invocation} "$@"\n')
    path = Path(name)
    path.chmod(0o755)
    return path


def _health_url(host: str, callback_port: int, app_id: PathId, version_id: str) -> str:
    return f"http://{host}:{callback_port}/health{app_id}/{version_id}"


def app_proxy(  # noqa: PLR0913
    app_id: PathId,
    version_id: str,
    instances: int,
    *,
    script: Path,
    callback_port: int,
    with_health: bool = True,
    dependencies: Iterable[PathId] = (),
) -> AppDefinition:
    """Describe a workload running the proxy through a local wrapper script.

    Args:
        app_id: Workload path.
        version_id: Version the proxy reports in its health queries.
        instances: Number of instances.
        script: Wrapper created by ``write_proxy_script``.
        callback_port: Port of the harness's callback endpoint.
        with_health: Attach the default proxy health check.
        dependencies: Workloads that must be deployed first.

    Returns:
        The workload definition.
    """
    health_url = _health_url("127.0.0.1", callback_port, app_id, version_id)
    cmd = f"echo APP PROXY $MESOS_TASK_ID RUNNING; {script} {app_id} {version_id} {health_url}"
    return AppDefinition(
        id=str(app_id),
        cmd=cmd,
        executor="//cmd",
        instances=instances,
        resources=PROXY_RESOURCES,
        health_checks=proxy_health_checks() if with_health else [],
        dependencies=[str(dependency) for dependency in dependencies],
    )


def docker_volumes(proxy: ProxyConfig) -> list[DockerVolume]:
    """Return the read-only mounts a dockerized proxy needs."""
    return [
        DockerVolume(host_path=proxy.ivy2_dir, container_path="/root/.ivy2"),
        DockerVolume(host_path=proxy.sbt_dir, container_path="/root/.sbt"),
        DockerVolume(host_path=f"{proxy.target_dirs}/main", container_path="/marathon/target"),
        DockerVolume(
            host_path=f"{proxy.target_dirs}/project",
            container_path="/marathon/project/target",
        ),
    ]


def docker_app_proxy(  # noqa: PLR0913
    app_id: PathId,
    version_id: str,
    instances: int,
    *,
    proxy_id: str,
    callback_port: int,
    proxy: ProxyConfig,
    with_health: bool = True,
    dependencies: Iterable[PathId] = (),
) -> AppDefinition:
    """Describe a workload running the proxy inside the build image.

    The container uses host networking and reaches the callback endpoint
    through ``$HOST``.

    Args:
        app_id: Workload path.
        version_id: Version the proxy reports in its health queries.
        instances: Number of instances.
        proxy_id: Marker placed on the proxy's command line.
        callback_port: Port of the harness's callback endpoint.
        proxy: Image tag and host directories to mount.
        with_health: Attach the default proxy health check.
        dependencies: Workloads that must be deployed first.

    Returns:
        The workload definition.
    """
    invocation = proxy_invocation(DOCKER_INTERPRETER, proxy_id)
    health_url = _health_url("$HOST", callback_port, app_id, version_id)
    cmd = (
        f"bash -c 'echo APP PROXY $MESOS_TASK_ID RUNNING; "
        f"{invocation} {app_id} {version_id} {health_url}'"
    )
    return AppDefinition(
        id=str(app_id),
        cmd=cmd,
        instances=instances,
        resources=PROXY_RESOURCES,
        container=Container(
            docker=DockerInfo(image=f"{BUILD_IMAGE}:{proxy.build_id}", network=DockerNetwork.HOST),
            volumes=docker_volumes(proxy),
        ),
        health_checks=proxy_health_checks() if with_health else [],
        dependencies=[str(dependency) for dependency in dependencies],
    )
