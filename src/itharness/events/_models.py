"""Callback event model."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

UNKNOWN_EVENT_TYPE = "unknown"


def _freeze(payload: Mapping[str, Any]) -> Mapping[str, Any]:  # pyright: ignore[reportExplicitAny]
    return MappingProxyType(dict(payload))


@dataclass(frozen=True, slots=True)
class CallbackEvent:
    """Immutable notification received from the server's event bus.

    Attributes:
        event_type: The ``eventType`` field of the notification.
        payload: The full decoded notification body, read-only.
    """

    event_type: str
    payload: Mapping[str, Any] = field(default_factory=dict)  # pyright: ignore[reportExplicitAny]

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", _freeze(self.payload))

    def get(self, key: str, default: Any = None) -> Any:  # pyright: ignore[reportExplicitAny,reportAny]
        """Return a payload field."""
        return self.payload.get(key, default)

    @property
    def id(self) -> str | None:
        """Deployment id carried by deployment events."""
        value = self.payload.get("id")
        return None if value is None else str(value)

    @property
    def task_status(self) -> str | None:
        """Task status carried by ``status_update_event`` notifications."""
        value = self.payload.get("taskStatus")
        return None if value is None else str(value)

    @property
    def app_id(self) -> str | None:
        value = self.payload.get("appId")
        return None if value is None else str(value)


def event_type_of(body: Any) -> str:  # pyright: ignore[reportExplicitAny,reportAny]
    """Extract the event kind from a decoded notification body.

    Strings are used as is, booleans become ``"true"`` or ``"false"``, other
    scalars are stringified, and anything else (missing, null, non-object
    body) is ``"unknown"``.
    """
    if not isinstance(body, Mapping):
        return UNKNOWN_EVENT_TYPE
    value = body.get("eventType")  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
    if value is None or isinstance(value, (Mapping, list)):
        return UNKNOWN_EVENT_TYPE
    if isinstance(value, bool):
        return "true" if value else "false"
    return value if isinstance(value, str) else str(value)  # pyright: ignore[reportUnknownArgumentType]
