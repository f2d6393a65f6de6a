import dataclasses
import threading

import pytest

from inactivity_monitor.data_types import BoundingBox, TrackedPerson, TrackSnapshot
from inactivity_monitor.track_store import TrackStore


def _person(track_id, active):
    box = BoundingBox(0, 0, 10, 10)
    return TrackedPerson(
        track_id=track_id,
        box=box,
        last_center=box.center,
        is_active=active,
        active_time=1.0 if active else 0.0,
        inactive_time=0.0 if active else 2.0,
    )


def test_store_starts_empty():
    store = TrackStore()
    assert len(store) == 0
    assert store.counts().total == 0


def test_publish_swaps_whole_snapshot():
    store = TrackStore()
    first = TrackSnapshot(frame_id=1, persons=(_person("a", True),))
    second = TrackSnapshot(frame_id=2, persons=(_person("b", False), _person("c", True)))

    store.publish(first)
    held = store.snapshot
    store.publish(second)

    # a reader holding the old snapshot still sees it intact
    assert held is first
    assert [p.track_id for p in held] == ["a"]
    assert store.snapshot is second
    assert store.get("b").inactive_time == 2.0
    assert store.get("a") is None


def test_counts_split_active_inactive():
    store = TrackStore()
    store.publish(TrackSnapshot(persons=(_person("a", True), _person("b", False), _person("c", False))))
    counts = store.counts()
    assert (counts.total, counts.active, counts.inactive) == (3, 1, 2)


def test_snapshot_and_persons_are_immutable():
    snapshot = TrackSnapshot(persons=(_person("a", True),))
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.persons = ()
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.persons[0].is_active = False


def test_clear_drops_everything():
    store = TrackStore()
    store.publish(TrackSnapshot(persons=(_person("a", True),)))
    store.clear()
    assert len(store) == 0


def test_concurrent_readers_only_see_complete_snapshots():
    store = TrackStore()
    sizes = set()
    stop = threading.Event()

    def reader():
        while not stop.is_set():
            snap = store.snapshot
            sizes.add((snap.frame_id, len(snap)))

    thread = threading.Thread(target=reader)
    thread.start()
    try:
        for i in range(1, 200):
            store.publish(TrackSnapshot(frame_id=i, persons=tuple(_person(f"p{j}", False) for j in range(i % 5))))
    finally:
        stop.set()
        thread.join()

    for frame_id, size in sizes:
        assert size == frame_id % 5
