"""Response models for the server and cluster APIs."""

from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

import orjson
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RestResult(Generic[T]):
    """Typed response value together with its HTTP status and raw body.

    Attributes:
        status_code: HTTP status code.
        value: Decoded value, or None when the response carried no entity.
        body: Decoded JSON body, or None if the body was empty or not JSON.
    """

    status_code: int
    value: T
    body: Any = None  # pyright: ignore[reportExplicitAny]

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 300  # noqa: PLR2004

    def entity_pretty_json(self) -> str:
        """Return the body pretty-printed, for assertion messages."""
        return orjson.dumps(self.body, option=orjson.OPT_INDENT_2).decode()


class _CamelModel(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore"
    )


class DeploymentResult(_CamelModel):
    """Answer to a change that starts a deployment."""

    version: str = ""
    deployment_id: str


class SubscriberList(_CamelModel):
    """Callback URLs subscribed to the server's event bus."""

    callback_urls: list[str] = Field(default_factory=list)


class Task(_CamelModel):
    """A workload instance as reported by the server."""

    id: str
    app_id: str = ""
    host: str = ""
    ports: list[int] = Field(default_factory=list)
    staged_at: str | None = None
    started_at: str | None = None
    version: str | None = None

    @property
    def launched(self) -> bool:
        """Return True once the instance has started running."""
        return self.started_at is not None


def _resources_empty(value: Any) -> bool:  # pyright: ignore[reportExplicitAny,reportAny]
    if isinstance(value, dict):
        return all(_resources_empty(v) for v in value.values())  # pyright: ignore[reportUnknownVariableType,reportUnknownArgumentType]
    if isinstance(value, list):
        return not value
    if isinstance(value, str):
        return value.strip() in {"", "[]"}
    if isinstance(value, (int, float)):
        return value == 0
    return value is None


class AgentState(BaseModel):
    """Resource usage of one cluster agent."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        populate_by_name=True, frozen=True, extra="ignore"
    )

    id: str
    used_resources: dict[str, Any] = Field(default_factory=dict)  # pyright: ignore[reportExplicitAny]
    reserved_resources_by_role: dict[str, dict[str, Any]] = Field(  # pyright: ignore[reportExplicitAny]
        default_factory=dict, alias="reserved_resources"
    )

    @property
    def empty(self) -> bool:
        """Return True if no resources are used or reserved on this agent.

        Zero scalars, empty port ranges (``"[]"``) and roles with only empty
        resources count as nothing.
        """
        return _resources_empty(self.used_resources) and _resources_empty(
            self.reserved_resources_by_role
        )


class ClusterState(BaseModel):
    """Snapshot of the cluster's agents."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        populate_by_name=True, frozen=True, extra="ignore"
    )

    agents: list[AgentState] = Field(default_factory=list, alias="slaves")

    @property
    def empty(self) -> bool:
        return all(agent.empty for agent in self.agents)
