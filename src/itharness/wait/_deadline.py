"""Monotonic deadlines shared across sequential waits."""

import time
from dataclasses import dataclass
from typing import Self


@dataclass(frozen=True, slots=True)
class Deadline:
    """An absolute point on the monotonic clock.

    Sequential waits that share one budget derive each step's timeout from
    ``remaining()`` so the steps together never exceed the original budget.

    Attributes:
        at: Monotonic timestamp (``time.monotonic()``) of expiry.
        budget: The duration the deadline was created from, in seconds.
    """

    at: float
    budget: float

    @classmethod
    def after(cls, seconds: float) -> Self:
        """Create a deadline ``seconds`` from now."""
        return cls(at=time.monotonic() + seconds, budget=seconds)

    def remaining(self) -> float:
        """Return the seconds left, never negative."""
        return max(0.0, self.at - time.monotonic())

    @property
    def expired(self) -> bool:
        """Return True once the deadline has passed."""
        return time.monotonic() >= self.at
