"""Pydantic models for workload definitions sent to the server."""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_RESOURCE_FIELDS = ("cpus", "mem", "disk", "gpus")


class VolumeMode(StrEnum):
    """Access mode of a container volume."""

    RO = "RO"
    RW = "RW"


class DockerNetwork(StrEnum):
    """Docker networking mode."""

    HOST = "HOST"
    BRIDGE = "BRIDGE"


class Resources(BaseModel):
    """Resources requested by each workload instance."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    cpus: float = 1.0
    mem: float = 128.0
    disk: float = 0.0
    gpus: int = 0


class HealthCheckDefinition(BaseModel):
    """Health check the server runs against each instance.

    The defaults are the ones workload proxies are deployed with.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    protocol: str = "HTTP"
    path: str = "/"
    port_index: int = 0
    grace_period_seconds: float = 5.0
    interval_seconds: float = 0.5
    timeout_seconds: float = 20.0
    max_consecutive_failures: int = 2


class DockerVolume(BaseModel):
    """Host directory mounted into a docker container."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    container_path: str
    host_path: str
    mode: VolumeMode = VolumeMode.RO


class DockerInfo(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    image: str
    network: DockerNetwork | None = None


class Container(BaseModel):
    """Docker container a workload runs in."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    type: str = "DOCKER"
    docker: DockerInfo
    volumes: list[DockerVolume] = Field(default_factory=list)


class AppDefinition(BaseModel):
    """A deployable workload.

    Resources are nested here and flattened to ``cpus``/``mem``/``disk``/
    ``gpus`` on the wire by ``to_payload()``.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    id: str
    cmd: str | None = None
    executor: str | None = None
    instances: int = 1
    resources: Resources = Field(default_factory=Resources)
    container: Container | None = None
    health_checks: list[HealthCheckDefinition] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    labels: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "AppDefinition":  # pyright: ignore[reportExplicitAny]
        """Parse the server's JSON shape, nesting the flat resource fields."""
        data = dict(payload)
        resources = {key: data.pop(key) for key in _RESOURCE_FIELDS if data.get(key) is not None}
        return cls.model_validate({**data, "resources": resources})

    def to_payload(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Serialize to the server's JSON shape with camelCase keys."""
        payload = self.model_dump(by_alias=True, exclude_none=True, exclude={"resources"})
        payload.update(self.resources.model_dump(by_alias=True))
        return payload
