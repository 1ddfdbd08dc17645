"""Thread-safe FIFO of callback events with deadline-bounded matching."""

import threading
from collections import Counter, deque
from collections.abc import Callable, Sequence
from typing import final

from itharness.wait import Deadline, wait_for

from ._models import CallbackEvent

EventPredicate = Callable[[CallbackEvent], bool]

DEFAULT_EVENT_TIMEOUT = 30.0


@final
class EventQueue:
    """FIFO of events pushed by HTTP handler threads and drained by a test.

    Producers may push concurrently; a single consumer scans. Every public
    method is one critical section. Scanning discards every event it skips,
    so each event is observed by at most one successful match.
    """

    __slots__ = ("_events", "_lock")

    def __init__(self) -> None:
        self._events: deque[CallbackEvent] = deque()
        self._lock = threading.Lock()

    def push(self, event: CallbackEvent) -> None:
        """Append an event at the tail."""
        with self._lock:
            self._events.append(event)

    def drain_matching(self, predicate: EventPredicate) -> CallbackEvent | None:
        """Pop events from the head until one satisfies ``predicate``.

        Non-matching events are discarded. This is a single non-blocking
        scan; blocking lives in the ``wait_*`` methods.

        Args:
            predicate: Event filter.

        Returns:
            The first matching event, or None once the queue is empty.
        """
        with self._lock:
            while self._events:
                event = self._events.popleft()
                if predicate(event):
                    return event
        return None

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def snapshot(self) -> list[CallbackEvent]:
        """Return a copy of the queued events in arrival order."""
        with self._lock:
            return list(self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def wait_for_matching(
        self,
        description: str,
        predicate: EventPredicate,
        timeout: float | Deadline = DEFAULT_EVENT_TIMEOUT,
    ) -> CallbackEvent:
        """Block until an event satisfying ``predicate`` arrives.

        Args:
            description: What is being waited for, used in the timeout error.
            predicate: Event filter.
            timeout: Budget in seconds, or a shared Deadline.

        Returns:
            The first matching event in arrival order.

        Raises:
            WaitTimeoutError: If no matching event arrives in time.
        """
        return wait_for(description, timeout, lambda: self.drain_matching(predicate))

    def wait_for_event(
        self,
        kind: str,
        predicate: EventPredicate | None = None,
        timeout: float | Deadline = DEFAULT_EVENT_TIMEOUT,
    ) -> CallbackEvent:
        """Block until an event of ``kind`` (and matching ``predicate``) arrives.

        Raises:
            WaitTimeoutError: If no matching event arrives in time.
        """

        def matches(event: CallbackEvent) -> bool:
            return event.event_type == kind and (predicate is None or predicate(event))

        return self.wait_for_matching(f"event {kind} to arrive", matches, timeout)

    def wait_for_events(
        self,
        kinds: Sequence[str],
        timeout: float = DEFAULT_EVENT_TIMEOUT,
    ) -> dict[str, list[CallbackEvent]]:
        """Block until one event per requested kind has arrived, in any order.

        Duplicate kinds are satisfied independently. All sub-waits share one
        deadline derived from ``timeout``.

        Args:
            kinds: Event kinds, duplicates allowed.
            timeout: Total budget in seconds.

        Returns:
            Matched events grouped by kind, in arrival order within a kind.

        Raises:
            WaitTimeoutError: If the full multiset is not matched in time.
        """
        deadline = Deadline.after(timeout)
        outstanding = Counter(kinds)
        received: dict[str, list[CallbackEvent]] = {}

        while outstanding:
            pending = sorted(outstanding.elements())
            event = self.wait_for_matching(
                f"events {pending} to arrive",
                lambda e: outstanding[e.event_type] > 0,
                deadline,
            )
            outstanding[event.event_type] -= 1
            if outstanding[event.event_type] == 0:
                del outstanding[event.event_type]
            received.setdefault(event.event_type, []).append(event)

        return received
