import threading
from typing import Optional

from inactivity_monitor.data_types import ActivityCounts, TrackedPerson, TrackSnapshot


class TrackStore:
    """
    Owns the latest published TrackSnapshot.

    The update cycle builds a complete new snapshot and hands it to
    publish(); readers (overlay, counters, other threads) only ever see
    whole snapshots, never one that is still being built.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot = TrackSnapshot()

    @property
    def snapshot(self) -> TrackSnapshot:
        with self._lock:
            return self._snapshot

    def publish(self, snapshot: TrackSnapshot) -> TrackSnapshot:
        with self._lock:
            self._snapshot = snapshot
        return snapshot

    def get(self, track_id: str) -> Optional[TrackedPerson]:
        return self.snapshot.get(track_id)

    def counts(self) -> ActivityCounts:
        return self.snapshot.counts()

    def clear(self) -> None:
        self.publish(TrackSnapshot())

    def __len__(self) -> int:
        return len(self.snapshot)
