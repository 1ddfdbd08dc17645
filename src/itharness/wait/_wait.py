"""Deadline-bounded polling.

Every blocking wait in the harness goes through ``wait_for``: the caller
supplies a ``check`` closure returning ``None`` until the awaited value is
available. Waits block the calling thread only; producers (HTTP handler
threads) keep running while a test waits.
"""

import time
from collections.abc import Callable
from typing import TypeVar

from itharness.exceptions import WaitTimeoutError

from ._deadline import Deadline

T = TypeVar("T")

POLL_INTERVAL = 0.05


def wait_for(
    description: str,
    timeout: float | Deadline,
    check: Callable[[], T | None],
    *,
    interval: float = POLL_INTERVAL,
) -> T:
    """Poll ``check`` until it returns a value or the deadline passes.

    ``check`` is always evaluated at least once, even when no time is left,
    so a value that is already available is never reported as a timeout.

    Args:
        description: What is being waited for, used in the timeout error.
        timeout: Budget in seconds, or a Deadline shared with other waits.
        check: Returns the awaited value, or None if not yet available.
            Exceptions raised by ``check`` propagate.
        interval: Seconds to sleep between evaluations.

    Returns:
        The first non-None value returned by ``check``.

    Raises:
        WaitTimeoutError: If the deadline passes first.
    """
    deadline = timeout if isinstance(timeout, Deadline) else Deadline.after(timeout)

    while True:
        result = check()
        if result is not None:
            return result

        remaining = deadline.remaining()
        if remaining <= 0:
            raise WaitTimeoutError(description, timeout=deadline.budget)
        time.sleep(min(interval, remaining))


def wait_until(
    description: str,
    timeout: float | Deadline,
    condition: Callable[[], bool],
    *,
    interval: float = POLL_INTERVAL,
) -> None:
    """Poll ``condition`` until it is true or the deadline passes.

    Raises:
        WaitTimeoutError: If the deadline passes first.
    """
    _ = wait_for(
        description,
        timeout,
        lambda: True if condition() else None,
        interval=interval,
    )
