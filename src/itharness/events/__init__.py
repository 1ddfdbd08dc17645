"""Callback events received from the server's event bus.

Key Components:
    - CallbackEvent: Immutable notification record
    - EventQueue: Thread-safe FIFO with deadline-bounded matching
"""

from ._models import UNKNOWN_EVENT_TYPE, CallbackEvent, event_type_of
from ._queue import DEFAULT_EVENT_TIMEOUT, EventPredicate, EventQueue

__all__ = [
    "DEFAULT_EVENT_TIMEOUT",
    "UNKNOWN_EVENT_TYPE",
    "CallbackEvent",
    "EventPredicate",
    "EventQueue",
    "event_type_of",
]
