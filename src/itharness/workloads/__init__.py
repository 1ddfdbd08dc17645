"""Workload definitions deployed by integration tests.

Key Components:
    - AppDefinition: A deployable workload with its resources and checks
    - app_proxy: Workload running the proxy from a local wrapper script
    - docker_app_proxy: Workload running the proxy inside the build image
"""

from ._builders import (
    BUILD_IMAGE,
    PROXY_RESOURCES,
    app_proxy,
    docker_app_proxy,
    docker_volumes,
    proxy_health_checks,
    proxy_invocation,
    write_proxy_script,
)
from ._models import (
    AppDefinition,
    Container,
    DockerInfo,
    DockerNetwork,
    DockerVolume,
    HealthCheckDefinition,
    Resources,
    VolumeMode,
)

__all__ = [
    "BUILD_IMAGE",
    "PROXY_RESOURCES",
    "AppDefinition",
    "Container",
    "DockerInfo",
    "DockerNetwork",
    "DockerVolume",
    "HealthCheckDefinition",
    "Resources",
    "VolumeMode",
    "app_proxy",
    "docker_app_proxy",
    "docker_volumes",
    "proxy_health_checks",
    "proxy_invocation",
    "write_proxy_script",
]
