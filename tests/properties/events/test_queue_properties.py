"""Property-based tests for EventQueue matching.

Invariants:
- Drain: the first match is returned and exactly the events after it remain
- Multiset waits: each requested kind gets its earliest events, in order
"""

from collections import Counter

from hypothesis import given, strategies as st

from itharness.events import CallbackEvent, EventQueue

kinds = st.sampled_from(["a", "b", "c", "d"])
event_kinds = st.lists(kinds, max_size=30)


def queue_of(sequence: list[str]) -> EventQueue:
    queue = EventQueue()
    for index, kind in enumerate(sequence):
        queue.push(CallbackEvent(kind, {"index": index}))
    return queue


@given(sequence=event_kinds, wanted=kinds)
def test_drain_returns_first_match_and_keeps_suffix(sequence: list[str], wanted: str) -> None:
    queue = queue_of(sequence)

    found = queue.drain_matching(lambda e: e.event_type == wanted)

    remaining = [e.get("index") for e in queue.snapshot()]
    if wanted in sequence:
        first = sequence.index(wanted)
        assert found is not None
        assert found.get("index") == first
        assert remaining == list(range(first + 1, len(sequence)))
    else:
        assert found is None
        assert remaining == []


@given(sequence=event_kinds, data=st.data())
def test_multiset_wait_takes_earliest_events_per_kind(
    sequence: list[str], data: st.DataObject
) -> None:
    mask = data.draw(st.lists(st.booleans(), min_size=len(sequence), max_size=len(sequence)))
    subset = [kind for kind, keep in zip(sequence, mask, strict=True) if keep]
    requested = data.draw(st.permutations(subset))
    queue = queue_of(sequence)

    received = queue.wait_for_events(requested, timeout=0.5)

    assert Counter({kind: len(events) for kind, events in received.items()}) == Counter(requested)
    for kind, events in received.items():
        expected = [index for index, k in enumerate(sequence) if k == kind][: len(events)]
        assert [e.get("index") for e in events] == expected
