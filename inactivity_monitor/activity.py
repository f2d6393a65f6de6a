import logging
import math
from typing import Callable, Optional

from inactivity_monitor.data_types import BoundingBox, TrackedPerson

logger = logging.getLogger(__name__)

AlertCallback = Callable[[str], None]

# absorbs float drift when many small deltas are summed (10 x 0.1 < 1.0)
TIME_EPSILON = 1e-9


class ActivityStateMachine:
    """
    Per-track activity state: Active / Inactive with streak timers.

    Behavior:
      - A new track starts inactive with both timers at zero
        (no movement can be measured on a first sighting).
      - Center movement above motion_threshold -> active, active streak
        grows, inactive streak and alert flag are cleared.
      - Otherwise -> inactive, active streak is cleared, inactive streak
        keeps growing. The first time it reaches inactivity_threshold the
        alert callback fires once; it re-arms only after the person moves.

    The thresholds are plain attributes so the owner can push new
    settings in before every frame.
    """

    def __init__(
        self,
        motion_threshold: float,
        inactivity_threshold: float,
        on_alert: Optional[AlertCallback] = None,
    ):
        self.motion_threshold = motion_threshold
        self.inactivity_threshold = inactivity_threshold
        self.on_alert = on_alert

    def start(self, track_id: str, box: BoundingBox) -> TrackedPerson:
        """
        Create the state for a detection that matched no existing track.
        """
        return TrackedPerson(
            track_id=track_id,
            box=box,
            last_center=box.center,
            is_active=False,
            active_time=0.0,
            inactive_time=0.0,
            alert_triggered=False,
        )

    def advance(self, previous: TrackedPerson, box: BoundingBox, delta_time: float) -> TrackedPerson:
        """
        Return the next state of `previous` given its newly matched box.
        `previous` is left untouched.
        """
        if not math.isfinite(delta_time) or delta_time < 0.0:
            delta_time = 0.0

        center = box.center
        movement = math.hypot(center[0] - previous.last_center[0], center[1] - previous.last_center[1])

        if movement > self.motion_threshold:
            return TrackedPerson(
                track_id=previous.track_id,
                box=box,
                last_center=center,
                is_active=True,
                active_time=previous.active_time + delta_time,
                inactive_time=0.0,
                alert_triggered=False,
            )

        inactive_time = previous.inactive_time + delta_time
        alert_triggered = previous.alert_triggered

        if inactive_time + TIME_EPSILON >= self.inactivity_threshold and not alert_triggered:
            alert_triggered = True
            self._fire_alert(previous.track_id, inactive_time)

        return TrackedPerson(
            track_id=previous.track_id,
            box=box,
            last_center=center,
            is_active=False,
            active_time=0.0,
            inactive_time=inactive_time,
            alert_triggered=alert_triggered,
        )

    def _fire_alert(self, track_id: str, inactive_time: float) -> None:
        logger.info("Inactivity alert for %s after %.1fs", track_id, inactive_time)
        if self.on_alert is None:
            return
        try:
            self.on_alert(track_id)
        except Exception:
            # a broken sink must not take tracking down with it
            logger.exception("Alert callback failed for %s", track_id)
