"""Deadline-bounded waiting primitives.

Example:
    >>> from itharness.wait import Deadline, wait_for
    >>> deadline = Deadline.after(5.0)
    >>> wait_for("the answer", deadline, lambda: 42)
    42
"""

from itharness.exceptions import WaitTimeoutError

from ._deadline import Deadline
from ._wait import POLL_INTERVAL, wait_for, wait_until

__all__ = [
    "POLL_INTERVAL",
    "Deadline",
    "WaitTimeoutError",
    "wait_for",
    "wait_until",
]
