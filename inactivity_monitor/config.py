# all configurations in one place

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

# Paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
MODELS_DIR = PROJECT_ROOT / "models"

# Valid ranges for the live settings
MIN_SENSITIVITY = 1
MAX_SENSITIVITY = 100
MIN_INACTIVITY_THRESHOLD = 0.1  # seconds

# motion threshold (pixels) = max(MIN_MOTION_THRESHOLD, BASE - sensitivity * SCALE)
MIN_MOTION_THRESHOLD = 5.0
BASE_MOTION_THRESHOLD = 50.0
MOTION_THRESHOLD_SCALE = 0.45


@dataclass
class VideoConfig:
    source: Union[int, str] = 0  # 0 for webcam, or path to video file
    frame_width: int = 1280
    frame_height: int = 720


@dataclass
class DetectionConfig:
    model_path: Path = MODELS_DIR / "detector" / "yolov8n.pt"
    fallback_model: str = "yolov8n.pt"
    confidence_threshold: float = 0.5  # keep detections strictly above this
    person_class_id: int = 0           # COCO "person"
    device: str = "auto"               # "auto", "cpu" or "cuda"


@dataclass
class MonitoringConfig:
    sensitivity: int = 50              # 1-100, higher = reacts to smaller movement
    inactivity_threshold: float = 10.0  # seconds before an alert fires
    frame_stride: int = 3              # run detection on every Nth frame


@dataclass
class MatchingConfig:
    max_center_distance: float = 200.0  # gate: candidate if closer than this ...
    min_gate_iou: float = 0.1           # ... or overlapping more than this
    max_cost: float = 150.0             # reject pairs at or above this cost
    iou_weight: float = 100.0
    distance_weight: float = 0.5


@dataclass
class AlertConfig:
    muted: bool = False
    sample_rate: int = 44100


@dataclass
class LoggingConfig:
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class PipelineConfig:
    video: VideoConfig = field(default_factory=VideoConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    alert: AlertConfig = field(default_factory=AlertConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def clamp_sensitivity(sensitivity: float) -> float:
    """
    Clamp sensitivity into [1, 100]. NaN falls back to the default.
    """
    sensitivity = float(sensitivity)
    if math.isnan(sensitivity):
        return float(MonitoringConfig.sensitivity)
    return max(float(MIN_SENSITIVITY), min(float(MAX_SENSITIVITY), sensitivity))


def clamp_inactivity_threshold(seconds: float) -> float:
    """
    Keep the inactivity threshold positive and finite.
    """
    seconds = float(seconds)
    if math.isnan(seconds):
        return MonitoringConfig.inactivity_threshold
    # +inf is allowed and simply never fires
    return max(MIN_INACTIVITY_THRESHOLD, seconds)


def clamp_frame_stride(stride: float) -> int:
    """
    At least 1. NaN or infinite strides fall back to the default.
    """
    stride = float(stride)
    if not math.isfinite(stride):
        return MonitoringConfig.frame_stride
    return max(1, int(stride))


def motion_threshold(sensitivity: float) -> float:
    """
    Convert sensitivity (1-100) into a pixel displacement threshold.

    sensitivity=1   -> 49.55 px
    sensitivity=50  -> 27.5 px
    sensitivity=100 -> 5 px (floor)
    """
    sensitivity = clamp_sensitivity(sensitivity)
    return max(MIN_MOTION_THRESHOLD, BASE_MOTION_THRESHOLD - sensitivity * MOTION_THRESHOLD_SCALE)
