import pytest

from inactivity_monitor.alerts import InactivityAlertSink
from inactivity_monitor.config import MonitoringConfig
from inactivity_monitor.detector import ScriptedDetector
from inactivity_monitor.main_demo import build_parser, config_from_args, handle_key
from inactivity_monitor.monitor import InactivityMonitor


def test_defaults_without_flags():
    cfg = config_from_args(build_parser().parse_args([]))
    assert cfg.video.source == 0
    assert cfg.monitoring.sensitivity == 50
    assert cfg.alert.muted is False


def test_flags_override_config():
    args = build_parser().parse_args(
        ["--video", "2", "--sensitivity", "80", "--threshold", "4.5", "--stride", "2", "--mute", "--device", "cpu"]
    )
    cfg = config_from_args(args)

    assert cfg.video.source == 2
    assert cfg.monitoring.sensitivity == 80
    assert cfg.monitoring.inactivity_threshold == 4.5
    assert cfg.monitoring.frame_stride == 2
    assert cfg.alert.muted is True
    assert cfg.detection.device == "cpu"


def test_video_path_is_kept_as_string():
    cfg = config_from_args(build_parser().parse_args(["--video", "clips/office.mp4"]))
    assert cfg.video.source == "clips/office.mp4"


def _monitor_and_sink():
    monitor = InactivityMonitor.from_config(
        ScriptedDetector([]),
        MonitoringConfig(sensitivity=50, inactivity_threshold=10.0),
    )
    return monitor, InactivityAlertSink(muted=False)


def test_bracket_keys_change_inactivity_threshold():
    monitor, sink = _monitor_and_sink()

    assert handle_key(ord("]"), monitor, sink) is True
    assert monitor.tracker.inactivity_threshold == pytest.approx(11.0)

    handle_key(ord("["), monitor, sink)
    handle_key(ord("["), monitor, sink)
    assert monitor.tracker.inactivity_threshold == pytest.approx(9.0)


def test_threshold_key_never_goes_below_floor():
    monitor, sink = _monitor_and_sink()
    for _ in range(20):
        handle_key(ord("["), monitor, sink)
    assert monitor.tracker.inactivity_threshold == pytest.approx(0.1)


def test_other_keys():
    monitor, sink = _monitor_and_sink()

    handle_key(ord("m"), monitor, sink)
    assert sink.muted is True
    handle_key(ord("+"), monitor, sink)
    assert monitor.tracker.sensitivity == 55
    assert handle_key(ord("q"), monitor, sink) is False
    assert handle_key(27, monitor, sink) is False
