import itertools
import logging
import time
from typing import List, Optional

from inactivity_monitor.activity import ActivityStateMachine, AlertCallback
from inactivity_monitor.association import BaseMatcher, GreedyCostMatcher
from inactivity_monitor.config import (
    MonitoringConfig,
    clamp_inactivity_threshold,
    clamp_sensitivity,
    motion_threshold,
)
from inactivity_monitor.data_types import FrameDetections, TrackedPerson, TrackSnapshot
from inactivity_monitor.track_store import TrackStore

logger = logging.getLogger(__name__)


class PersonActivityTracker:
    """
    Multi-person tracker with per-person activity state.

    Logic, once per processed frame:
      - Degenerate detections (non-finite or non-positive size) are dropped.
      - Remaining detections are matched against the current snapshot.
      - Matched detections advance their track's activity state.
      - Unmatched detections start new tracks with fresh ids.
      - Unmatched tracks are dropped; there is no grace period.
      - The result is published to the store as one new snapshot.
    """

    def __init__(
        self,
        sensitivity: float = MonitoringConfig.sensitivity,
        inactivity_threshold: float = MonitoringConfig.inactivity_threshold,
        on_alert: Optional[AlertCallback] = None,
        matcher: Optional[BaseMatcher] = None,
        store: Optional[TrackStore] = None,
        id_prefix: str = "person",
    ):
        self.matcher = matcher or GreedyCostMatcher()
        self.store = store or TrackStore()
        self.id_prefix = id_prefix

        self._sensitivity = clamp_sensitivity(sensitivity)
        self._inactivity_threshold = clamp_inactivity_threshold(inactivity_threshold)
        self._state_machine = ActivityStateMachine(
            motion_threshold=motion_threshold(self._sensitivity),
            inactivity_threshold=self._inactivity_threshold,
            on_alert=on_alert,
        )
        # ids keep counting across reset() so a dropped id never comes back
        self._ids = itertools.count(1)

    # ----- settings -----

    @property
    def sensitivity(self) -> float:
        return self._sensitivity

    @sensitivity.setter
    def sensitivity(self, value: float) -> None:
        self._sensitivity = clamp_sensitivity(value)
        self._state_machine.motion_threshold = motion_threshold(self._sensitivity)

    @property
    def inactivity_threshold(self) -> float:
        return self._inactivity_threshold

    @inactivity_threshold.setter
    def inactivity_threshold(self, value: float) -> None:
        self._inactivity_threshold = clamp_inactivity_threshold(value)
        self._state_machine.inactivity_threshold = self._inactivity_threshold

    @property
    def motion_threshold(self) -> float:
        return self._state_machine.motion_threshold

    @property
    def snapshot(self) -> TrackSnapshot:
        return self.store.snapshot

    # ----- update -----

    def _next_id(self) -> str:
        return f"{self.id_prefix}_{next(self._ids)}"

    def update(
        self,
        frame_detections: FrameDetections,
        delta_time: float,
        timestamp: Optional[float] = None,
    ) -> TrackSnapshot:
        """
        Run one association + activity update and publish the result.

        delta_time: seconds since the previous processed frame.
        """
        valid = []
        for det in frame_detections.detections:
            if det.box.is_valid:
                valid.append(det)
            else:
                logger.debug("Skipping degenerate detection %s", det.box)

        previous = self.store.snapshot
        previous_by_id = previous.by_id()
        matches = self.matcher.match(valid, previous.persons)

        persons: List[TrackedPerson] = []
        for det_idx, det in enumerate(valid):
            matched_id = matches.get(det_idx)
            if matched_id is not None:
                person = self._state_machine.advance(previous_by_id[matched_id], det.box, delta_time)
            else:
                person = self._state_machine.start(self._next_id(), det.box)
                logger.debug("New track %s at %s", person.track_id, det.box)
            persons.append(person)

        matched_ids = set(matches.values())
        for track_id in previous_by_id:
            if track_id not in matched_ids:
                logger.debug("Dropping track %s", track_id)

        snapshot = TrackSnapshot(
            frame_id=frame_detections.frame_id,
            timestamp=time.time() if timestamp is None else timestamp,
            persons=tuple(persons),
        )
        return self.store.publish(snapshot)

    def reset(self) -> None:
        """
        Forget all tracks (monitoring stopped).
        """
        self.store.clear()
