# End-to-end inactivity monitoring demo script

import argparse
import logging

import cv2

from inactivity_monitor.alerts import AlarmPlayer, InactivityAlertSink
from inactivity_monitor.config import LoggingConfig, PipelineConfig
from inactivity_monitor.detector import YoloDetector
from inactivity_monitor.monitor import InactivityMonitor
from inactivity_monitor.overlay import draw_persons_and_counts

logger = logging.getLogger(__name__)

SENSITIVITY_STEP = 5
THRESHOLD_STEP = 1.0  # seconds


def configure_logging(config: LoggingConfig) -> None:
    logging.basicConfig(level=config.level.upper(), format=config.format)


def handle_key(key: int, monitor: InactivityMonitor, sink: InactivityAlertSink) -> bool:
    """
    Apply one keypress from the display window. Returns False to quit.
    """
    if key == 27 or key == ord("q"):  # ESC or q
        return False
    if key == ord("m"):
        sink.muted = not sink.muted
        logger.info("Alarm %s", "muted" if sink.muted else "unmuted")
    elif key in (ord("+"), ord("=")):
        monitor.update_settings(sensitivity=monitor.tracker.sensitivity + SENSITIVITY_STEP)
        logger.info("Sensitivity %s", monitor.tracker.sensitivity)
    elif key == ord("-"):
        monitor.update_settings(sensitivity=monitor.tracker.sensitivity - SENSITIVITY_STEP)
        logger.info("Sensitivity %s", monitor.tracker.sensitivity)
    elif key == ord("]"):
        monitor.update_settings(inactivity_threshold=monitor.tracker.inactivity_threshold + THRESHOLD_STEP)
        logger.info("Inactivity threshold %.1fs", monitor.tracker.inactivity_threshold)
    elif key == ord("["):
        monitor.update_settings(inactivity_threshold=monitor.tracker.inactivity_threshold - THRESHOLD_STEP)
        logger.info("Inactivity threshold %.1fs", monitor.tracker.inactivity_threshold)
    return True


def run_demo(config: PipelineConfig, video_source=None) -> None:
    """
    End-to-end demo:
      frame -> detector -> tracker -> alert sink / overlay -> display

    Keys: q/ESC quit, m toggle mute, +/- change sensitivity,
    [/] change the inactivity threshold.
    """

    if video_source is None:
        video_source = config.video.source

    cap = cv2.VideoCapture(video_source)
    if not cap.isOpened():
        raise RuntimeError(f"Could not open video source: {video_source}")

    detector = YoloDetector(config.detection)
    player = AlarmPlayer(sample_rate=config.alert.sample_rate)
    sink = InactivityAlertSink(player, muted=config.alert.muted)
    monitor = InactivityMonitor.from_config(
        detector,
        config.monitoring,
        on_alert=sink,
        matching=config.matching,
    )

    monitor.start()
    logger.info(
        "Sensitivity %s (motion threshold %.1f px), inactivity threshold %.1fs",
        monitor.tracker.sensitivity,
        monitor.tracker.motion_threshold,
        monitor.tracker.inactivity_threshold,
    )

    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                break

            frame = cv2.resize(
                frame,
                (config.video.frame_width, config.video.frame_height),
            )

            snapshot = monitor.process_frame(frame)

            draw_persons_and_counts(frame, snapshot, muted=sink.muted)

            cv2.imshow("Inactivity Monitor", frame)
            key = cv2.waitKey(1) & 0xFF
            if not handle_key(key, monitor, sink):
                break
    finally:
        monitor.stop()
        player.close()
        cap.release()
        cv2.destroyAllWindows()

    logger.info(
        "Processed %d frames, %d alerts, %d detection failures",
        monitor.processed_count,
        sink.alert_count,
        monitor.detection_failures,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Multi-person inactivity monitor")
    parser.add_argument(
        "--video",
        type=str,
        default=None,
        help="Video file path or camera index (e.g. 0 for default webcam)",
    )
    parser.add_argument("--sensitivity", type=int, default=None, help="Motion sensitivity, 1-100")
    parser.add_argument("--threshold", type=float, default=None, help="Seconds of inactivity before an alert")
    parser.add_argument("--stride", type=int, default=None, help="Run detection on every Nth frame")
    parser.add_argument("--device", type=str, default=None, help="auto, cpu or cuda")
    parser.add_argument("--mute", action="store_true", help="Disable the audio alarm")
    parser.add_argument("--log-level", type=str, default=None, help="DEBUG, INFO, WARNING ...")
    return parser


def config_from_args(args: argparse.Namespace) -> PipelineConfig:
    cfg = PipelineConfig()

    if args.video is not None:
        # If argument is a digit, treat it as camera index; else as path
        cfg.video.source = int(args.video) if args.video.isdigit() else args.video
    if args.sensitivity is not None:
        cfg.monitoring.sensitivity = args.sensitivity
    if args.threshold is not None:
        cfg.monitoring.inactivity_threshold = args.threshold
    if args.stride is not None:
        cfg.monitoring.frame_stride = args.stride
    if args.device is not None:
        cfg.detection.device = args.device
    if args.mute:
        cfg.alert.muted = True
    if args.log_level is not None:
        cfg.logging.level = args.log_level

    return cfg


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    cfg = config_from_args(args)
    configure_logging(cfg.logging)
    run_demo(cfg)


if __name__ == "__main__":
    main()
