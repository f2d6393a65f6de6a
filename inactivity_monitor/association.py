from abc import ABC, abstractmethod
from dataclasses import dataclass
import math
from typing import Dict, List, Optional, Sequence

from inactivity_monitor.config import MatchingConfig
from inactivity_monitor.data_types import BoundingBox, Detection, TrackedPerson


def iou(box_a: BoundingBox, box_b: BoundingBox) -> float:
    """
    Compute Intersection over Union of two boxes in xywh format.
    Returns 0 for disjoint boxes and whenever either box is degenerate.
    """
    if not (box_a.is_valid and box_b.is_valid):
        return 0.0

    x1 = max(box_a.x, box_b.x)
    y1 = max(box_a.y, box_b.y)
    x2 = min(box_a.x + box_a.width, box_b.x + box_b.width)
    y2 = min(box_a.y + box_a.height, box_b.y + box_b.height)

    inter_w = max(0.0, x2 - x1)
    inter_h = max(0.0, y2 - y1)
    inter_area = inter_w * inter_h

    if inter_area <= 0.0:
        return 0.0

    union = box_a.area + box_b.area - inter_area
    if union <= 0.0:
        return 0.0

    return float(inter_area / union)


def center_distance(box_a: BoundingBox, box_b: BoundingBox) -> float:
    """
    Euclidean distance between the centers of two boxes.
    """
    (ax, ay), (bx, by) = box_a.center, box_b.center
    return math.hypot(ax - bx, ay - by)


@dataclass(frozen=True)
class CandidatePair:
    """
    A (detection, track) pair that passed the gate, with its matching cost.
    """
    detection_index: int
    track_id: str
    iou: float
    distance: float
    cost: float


class BaseMatcher(ABC):
    """
    Abstract interface for detection-to-track association.
    """

    @abstractmethod
    def match(
        self,
        detections: Sequence[Detection],
        tracks: Sequence[TrackedPerson],
    ) -> Dict[int, str]:
        """
        Return an injective mapping detection index -> track id.
        Detections missing from the mapping are unmatched.
        """
        raise NotImplementedError


class GreedyCostMatcher(BaseMatcher):
    """
    Global greedy assignment on a combined IoU + center-distance cost.

    Logic:
      - Every (detection, track) pair is gated: it is a candidate only if
        the centers are closer than max_center_distance or the boxes
        overlap by more than min_gate_iou.
      - cost = (1 - iou) * iou_weight + distance * distance_weight
      - Candidates are sorted by ascending cost and accepted in that order
        while both endpoints are still free and cost < max_cost.

    Not globally optimal (that would be Hungarian), but deterministic:
    equal costs keep enumeration order (detections outer, tracks inner)
    because list.sort is stable.
    """

    def __init__(self, config: Optional[MatchingConfig] = None):
        self.config = config or MatchingConfig()

    def pair_cost(self, pair_iou: float, distance: float) -> float:
        return (1.0 - pair_iou) * self.config.iou_weight + distance * self.config.distance_weight

    def candidate_pairs(
        self,
        detections: Sequence[Detection],
        tracks: Sequence[TrackedPerson],
    ) -> List[CandidatePair]:
        """
        Gated candidates in enumeration order (not yet sorted).
        Degenerate boxes on either side never become candidates.
        """
        candidates: List[CandidatePair] = []

        for det_idx, det in enumerate(detections):
            if not det.box.is_valid:
                continue

            for track in tracks:
                if not track.box.is_valid:
                    continue

                pair_iou = iou(det.box, track.box)
                distance = center_distance(det.box, track.box)

                if distance < self.config.max_center_distance or pair_iou > self.config.min_gate_iou:
                    candidates.append(
                        CandidatePair(
                            detection_index=det_idx,
                            track_id=track.track_id,
                            iou=pair_iou,
                            distance=distance,
                            cost=self.pair_cost(pair_iou, distance),
                        )
                    )

        return candidates

    def match(
        self,
        detections: Sequence[Detection],
        tracks: Sequence[TrackedPerson],
    ) -> Dict[int, str]:
        candidates = self.candidate_pairs(detections, tracks)
        candidates.sort(key=lambda pair: pair.cost)

        matches: Dict[int, str] = {}
        used_track_ids: set[str] = set()

        for pair in candidates:
            if pair.cost >= self.config.max_cost:
                # sorted, so nothing after this can be accepted either
                break
            if pair.detection_index in matches or pair.track_id in used_track_ids:
                continue

            matches[pair.detection_index] = pair.track_id
            used_track_ids.add(pair.track_id)

        return matches
