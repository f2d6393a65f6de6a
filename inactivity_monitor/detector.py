from abc import ABC, abstractmethod
from typing import Iterable, List, Sequence
from pathlib import Path

import numpy as np
import torch

from ultralytics import YOLO

from inactivity_monitor.data_types import Detection, FrameDetections, BoundingBox
from inactivity_monitor.config import DetectionConfig


class BaseDetector(ABC):
    """
    Abstract interface for all person detectors.
    """

    @abstractmethod
    def detect(self, frame: np.ndarray, frame_id: int) -> FrameDetections:
        """
        Run detection on a single frame.
        Must return FrameDetections holding person boxes only.
        """
        raise NotImplementedError


class ScriptedDetector(BaseDetector):
    """
    Replays pre-recorded detection lists, one per call.
    Lets you drive the tracker without a model (tests, dry runs).
    Once the script runs out it returns no detections.
    """

    def __init__(self, script: Iterable[Sequence[Detection]]):
        self._script = list(script)
        self._calls = 0

    def detect(self, frame: np.ndarray, frame_id: int) -> FrameDetections:
        if self._calls < len(self._script):
            detections = list(self._script[self._calls])
        else:
            detections = []
        self._calls += 1
        return FrameDetections(frame_id=frame_id, detections=detections)


def resolve_device(device: str) -> str:
    """
    "auto" -> "cuda" when available, else "cpu". Anything else passes through.
    """
    if device == "auto":
        return "cuda" if torch.cuda.is_available() else "cpu"
    return device


def person_detections(
    xyxy: np.ndarray,
    scores: np.ndarray,
    class_ids: np.ndarray,
    person_class_id: int = 0,
    confidence_threshold: float = 0.5,
) -> List[Detection]:
    """
    Convert raw model arrays (N x 4 xyxy, N scores, N class ids) into
    person Detections with xywh boxes, keeping scores strictly above
    the threshold.
    """
    detections: List[Detection] = []

    for (x1, y1, x2, y2), score, class_id in zip(xyxy, scores, class_ids):
        if int(class_id) != person_class_id:
            continue
        if float(score) <= confidence_threshold:
            continue

        detections.append(
            Detection(
                box=BoundingBox.from_xyxy(float(x1), float(y1), float(x2), float(y2)),
                score=float(score),
            )
        )

    return detections


class YoloDetector(BaseDetector):
    """
    YOLOv8-based person detector using the ultralytics package.

    Behavior:
      - If a weights file exists at DetectionConfig.model_path, use it.
      - Otherwise, fall back to the pretrained COCO model named by
        DetectionConfig.fallback_model (downloaded on first use).
      - Only the person class is kept, confidence > confidence_threshold.
    """

    def __init__(self, config: DetectionConfig):
        self.config = config
        self.device = resolve_device(config.device)

        weights_path: Path = Path(self.config.model_path)

        if weights_path.is_file():
            self.model = YOLO(str(weights_path))
        else:
            self.model = YOLO(self.config.fallback_model)

    def detect(self, frame: np.ndarray, frame_id: int) -> FrameDetections:
        """
        Run YOLO detection on a single BGR frame.
        """
        results = self.model(
            frame,
            classes=[self.config.person_class_id],
            conf=self.config.confidence_threshold,
            device=self.device,
            verbose=False,
        )[0]

        if results.boxes is None or len(results.boxes) == 0:
            return FrameDetections(frame_id=frame_id, detections=[])

        boxes = results.boxes
        detections = person_detections(
            boxes.xyxy.cpu().numpy(),
            boxes.conf.cpu().numpy(),
            boxes.cls.cpu().numpy(),
            person_class_id=self.config.person_class_id,
            confidence_threshold=self.config.confidence_threshold,
        )

        return FrameDetections(frame_id=frame_id, detections=detections)
