"""Response models for the callback endpoint."""

from pydantic import BaseModel


class AckResponse(BaseModel):
    """Acknowledgement of a received event."""

    event_type: str


class HealthResponse(BaseModel):
    """Answer to a workload health query."""

    status: str
