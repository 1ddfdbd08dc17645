"""Callback endpoint receiving server notifications and proxy health queries.

Key Components:
    - create_callback_app: FastAPI application routing callbacks
    - CallbackEndpoint: The application served from a background thread
    - parse_health_path: Splits a health query path into its identity
"""

from ._app import ViolationHandler, create_callback_app, parse_health_path
from ._endpoint import CallbackEndpoint
from ._schemas import AckResponse, HealthResponse

__all__ = [
    "AckResponse",
    "CallbackEndpoint",
    "HealthResponse",
    "ViolationHandler",
    "create_callback_app",
    "parse_health_path",
]
