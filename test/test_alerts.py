import numpy as np
import pytest

from inactivity_monitor.alerts import (
    ALARM_GAIN,
    AlarmPlayer,
    InactivityAlertSink,
    alarm_waveform,
    square_tone,
    to_int16,
)

RATE = 8000


class FakePlayer:
    def __init__(self):
        self.plays = 0

    def play(self):
        self.plays += 1
        return True


def test_square_tone_envelope():
    tone = square_tone(1000.0, 0.15, RATE)
    assert len(tone) == 1200
    assert tone.dtype == np.float32
    assert tone[0] == pytest.approx(0.0)
    assert abs(tone[-1]) < 0.01
    assert np.max(np.abs(tone)) == pytest.approx(ALARM_GAIN)
    # plateau is a full-gain square wave
    assert set(np.round(np.abs(tone[300:900]), 6)) == {ALARM_GAIN}


def test_alarm_waveform_pattern():
    wave = alarm_waveform(RATE)
    assert len(wave) == int(round(1.05 * RATE)) + 1
    assert np.max(np.abs(wave)) <= ALARM_GAIN + 1e-6

    # gaps between beeps are silent
    for gap_start, gap_end in ((0.16, 0.19), (0.36, 0.39), (0.56, 0.59), (0.76, 0.79)):
        assert not np.any(wave[int(gap_start * RATE):int(gap_end * RATE)])

    # final beep is present
    assert np.max(np.abs(wave[int(0.9 * RATE):int(1.0 * RATE)])) == pytest.approx(ALARM_GAIN)


def test_to_int16_channels():
    mono = to_int16(np.array([0.0, 0.5, -1.0, 2.0], dtype=np.float32))
    assert mono.dtype == np.int16
    assert mono.tolist() == [0, 16383, -32767, 32767]

    stereo = to_int16(np.array([0.5, -0.5], dtype=np.float32), channels=2)
    assert stereo.shape == (2, 2)
    assert stereo[:, 0].tolist() == stereo[:, 1].tolist()


def test_sink_plays_alarm_and_records_alert():
    player = FakePlayer()
    sink = InactivityAlertSink(player)

    sink("person_1")
    sink("person_2")

    assert player.plays == 2
    assert sink.alerts == ["person_1", "person_2"]
    assert sink.alert_count == 2


def test_muted_sink_only_records():
    player = FakePlayer()
    sink = InactivityAlertSink(player, muted=True)

    sink("person_1")

    assert player.plays == 0
    assert sink.alert_count == 1


def test_player_is_lazy_and_close_is_idempotent():
    player = AlarmPlayer(sample_rate=RATE)
    assert player.is_open is False
    player.close()
    player.close()
    assert player.is_open is False
