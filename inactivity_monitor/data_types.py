# Core data structures (boxes, detections, tracked persons, snapshots)

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

Point = Tuple[float, float]


# box coordinates
@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned bounding box in frame pixel coordinates.
    (x, y) = top-left corner, width/height extend right and down.
    """
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        return cls(x=float(x1), y=float(y1), width=float(x2 - x1), height=float(y2 - y1))

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def is_valid(self) -> bool:
        """
        True if every component is finite and both sides are positive.
        Degenerate boxes are excluded from matching.
        """
        values = (self.x, self.y, self.width, self.height)
        if not all(math.isfinite(v) for v in values):
            return False
        return self.width > 0 and self.height > 0


@dataclass(frozen=True)
class Detection:
    """
    Single person detection for one frame. Not kept past one matching cycle.
    """
    box: BoundingBox
    score: float


@dataclass
class FrameDetections:
    """
    All person detections for a single frame.
    """
    frame_id: int
    detections: List[Detection]


@dataclass(frozen=True)
class TrackedPerson:
    """
    One physical person followed across processed frames.

    active_time / inactive_time hold the length of the *current* streak,
    so at most one of them is non-zero. alert_triggered is set once per
    inactivity episode and cleared as soon as the person moves again.
    """
    track_id: str
    box: BoundingBox
    last_center: Point
    is_active: bool = False
    active_time: float = 0.0
    inactive_time: float = 0.0
    alert_triggered: bool = False

    @property
    def streak_time(self) -> float:
        return self.active_time if self.is_active else self.inactive_time


@dataclass(frozen=True)
class ActivityCounts:
    total: int = 0
    active: int = 0
    inactive: int = 0


@dataclass(frozen=True)
class TrackSnapshot:
    """
    Immutable set of tracked persons after one processed frame.
    A new snapshot replaces the previous one wholesale every cycle.
    """
    frame_id: int = 0
    timestamp: Optional[float] = None
    persons: Tuple[TrackedPerson, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.persons)

    def __iter__(self):
        return iter(self.persons)

    def by_id(self) -> Dict[str, TrackedPerson]:
        return {p.track_id: p for p in self.persons}

    def get(self, track_id: str) -> Optional[TrackedPerson]:
        for person in self.persons:
            if person.track_id == track_id:
                return person
        return None

    def counts(self) -> ActivityCounts:
        active = sum(1 for p in self.persons if p.is_active)
        return ActivityCounts(
            total=len(self.persons),
            active=active,
            inactive=len(self.persons) - active,
        )
