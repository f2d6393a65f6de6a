import logging
import time
from typing import Callable, Optional

import numpy as np

from inactivity_monitor.association import GreedyCostMatcher
from inactivity_monitor.config import MatchingConfig, MonitoringConfig, clamp_frame_stride
from inactivity_monitor.data_types import TrackSnapshot
from inactivity_monitor.detector import BaseDetector
from inactivity_monitor.tracker import PersonActivityTracker

logger = logging.getLogger(__name__)


class InactivityMonitor:
    """
    Drives detector -> tracker for a stream of frames.

    Behavior:
      - Only every `frame_stride`-th frame is sent to the detector; the
        others return the latest snapshot unchanged.
      - Time between processed frames is measured with `clock` (wall
        clock), so timers stay correct whatever the real frame rate is.
      - A detector exception is logged and the previous snapshot is
        carried forward: a failed inference must not look like everyone
        left the frame.
      - At most one detect+update cycle runs at a time.
    """

    def __init__(
        self,
        detector: BaseDetector,
        tracker: PersonActivityTracker,
        frame_stride: int = MonitoringConfig.frame_stride,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.detector = detector
        self.tracker = tracker
        self.frame_stride = clamp_frame_stride(frame_stride)
        self.clock = clock

        self.frame_count = 0
        self.processed_count = 0
        self.detection_failures = 0
        self.last_error: Optional[Exception] = None

        self._busy = False
        self._running = False
        self._last_update = clock()

    @classmethod
    def from_config(
        cls,
        detector: BaseDetector,
        config: MonitoringConfig,
        on_alert=None,
        clock: Callable[[], float] = time.monotonic,
        matching: Optional[MatchingConfig] = None,
    ) -> "InactivityMonitor":
        tracker = PersonActivityTracker(
            sensitivity=config.sensitivity,
            inactivity_threshold=config.inactivity_threshold,
            on_alert=on_alert,
            matcher=GreedyCostMatcher(matching),
        )
        return cls(detector, tracker, frame_stride=config.frame_stride, clock=clock)

    @property
    def snapshot(self) -> TrackSnapshot:
        return self.tracker.snapshot

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """
        Begin a monitoring session with an empty track store.
        """
        self.tracker.reset()
        self.frame_count = 0
        self.last_error = None
        self._last_update = self.clock()
        self._running = True
        logger.info("Monitoring started")

    def stop(self) -> None:
        """
        End the session. All tracks are dropped; nothing survives a restart.
        """
        self._running = False
        self.tracker.reset()
        logger.info("Monitoring stopped")

    def update_settings(
        self,
        sensitivity: Optional[float] = None,
        inactivity_threshold: Optional[float] = None,
    ) -> None:
        if sensitivity is not None:
            self.tracker.sensitivity = sensitivity
        if inactivity_threshold is not None:
            self.tracker.inactivity_threshold = inactivity_threshold

    def process_frame(self, frame: np.ndarray) -> TrackSnapshot:
        """
        Feed one video frame. Returns the latest snapshot.
        """
        if not self._running:
            self.start()

        self.frame_count += 1
        if self.frame_count % self.frame_stride != 0:
            return self.snapshot

        if self._busy:
            # previous cycle not consumed yet
            return self.snapshot

        self._busy = True
        try:
            return self._run_cycle(frame)
        finally:
            self._busy = False

    def _run_cycle(self, frame: np.ndarray) -> TrackSnapshot:
        try:
            frame_detections = self.detector.detect(frame, self.frame_count)
        except Exception as e:
            self.detection_failures += 1
            self.last_error = e
            logger.warning("Detection failed on frame %d, keeping previous tracks: %s", self.frame_count, e)
            return self.snapshot

        now = self.clock()
        delta_time = max(0.0, now - self._last_update)
        self._last_update = now
        self.last_error = None
        self.processed_count += 1

        return self.tracker.update(frame_detections, delta_time, timestamp=now)
