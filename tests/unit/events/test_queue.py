import threading
import time

import pytest

from itharness.events import CallbackEvent, EventQueue
from itharness.exceptions import WaitTimeoutError


def event(kind: str, **payload: object) -> CallbackEvent:
    return CallbackEvent(kind, payload)


class TestDrainMatching:
    def test_returns_none_on_empty_queue(self, events: EventQueue) -> None:
        assert events.drain_matching(lambda _: True) is None

    def test_discards_skipped_events(self, events: EventQueue) -> None:
        events.push(event("a"))
        events.push(event("b"))
        events.push(event("c"))

        found = events.drain_matching(lambda e: e.event_type == "b")

        assert found is not None
        assert found.event_type == "b"
        assert [e.event_type for e in events.snapshot()] == ["c"]

    def test_no_match_empties_queue(self, events: EventQueue) -> None:
        events.push(event("a"))
        events.push(event("b"))

        assert events.drain_matching(lambda e: e.event_type == "z") is None
        assert len(events) == 0

    def test_clear(self, events: EventQueue) -> None:
        events.push(event("a"))
        events.clear()

        assert len(events) == 0


class TestWaitForEvent:
    def test_returns_event_already_queued(self, events: EventQueue) -> None:
        events.push(event("deployment_success", id="d1"))

        found = events.wait_for_event("deployment_success", timeout=0.0)

        assert found.id == "d1"

    def test_applies_predicate(self, events: EventQueue) -> None:
        events.push(event("deployment_success", id="d1"))
        events.push(event("deployment_success", id="d2"))

        found = events.wait_for_event("deployment_success", lambda e: e.id == "d2", timeout=0.5)

        assert found.id == "d2"
        assert len(events) == 0

    def test_receives_event_pushed_from_another_thread(self, events: EventQueue) -> None:
        def produce() -> None:
            time.sleep(0.05)
            events.push(event("app_terminated_event"))

        producer = threading.Thread(target=produce)
        producer.start()
        try:
            found = events.wait_for_event("app_terminated_event", timeout=2.0)
        finally:
            producer.join()

        assert found.event_type == "app_terminated_event"

    def test_timeout_description_names_kind(self, events: EventQueue) -> None:
        with pytest.raises(WaitTimeoutError, match="event group_change_success to arrive"):
            _ = events.wait_for_event("group_change_success", timeout=0.05)

    def test_events_pushed_after_timeout_remain_observable(self, events: EventQueue) -> None:
        with pytest.raises(WaitTimeoutError):
            _ = events.wait_for_event("late", timeout=0.05)
        events.push(event("late"))

        assert events.wait_for_event("late", timeout=0.0).event_type == "late"


class TestWaitForEvents:
    def test_duplicates_are_matched_independently(self, events: EventQueue) -> None:
        events.push(event("B", n=1))
        events.push(event("A", n=2))
        events.push(event("A", n=3))

        received = events.wait_for_events(["A", "B", "A"], timeout=0.5)

        assert [e.get("n") for e in received["A"]] == [2, 3]
        assert [e.get("n") for e in received["B"]] == [1]

    def test_surplus_events_of_satisfied_kind_are_discarded(self, events: EventQueue) -> None:
        events.push(event("A", n=1))
        events.push(event("A", n=2))
        events.push(event("B", n=3))

        received = events.wait_for_events(["A", "B"], timeout=0.5)

        assert [e.get("n") for e in received["A"]] == [1]
        assert [e.get("n") for e in received["B"]] == [3]

    def test_missing_kind_times_out_within_budget(self, events: EventQueue) -> None:
        events.push(event("A"))
        start = time.monotonic()

        with pytest.raises(WaitTimeoutError, match="B"):
            _ = events.wait_for_events(["A", "B"], timeout=0.2)

        assert time.monotonic() - start < 1.0

    def test_empty_request_returns_immediately(self, events: EventQueue) -> None:
        assert events.wait_for_events([], timeout=0.0) == {}
