"""
Inactivity alert sink.

AlarmPlayer owns the audio device explicitly: pygame.mixer is opened on the
first play() and closed by close(). Nothing is initialised at import time.

InactivityAlertSink is the callable handed to the tracker as `on_alert`.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pygame

logger = logging.getLogger(__name__)

# (start seconds, frequency Hz, duration seconds)
ALARM_PATTERN: Sequence[Tuple[float, float, float]] = (
    (0.0, 1000.0, 0.15),
    (0.2, 800.0, 0.15),
    (0.4, 1000.0, 0.15),
    (0.6, 800.0, 0.15),
    (0.8, 1200.0, 0.25),  # final long beep
)
ALARM_GAIN = 0.5
RAMP_SECONDS = 0.02


def square_tone(frequency: float, duration: float, sample_rate: int, gain: float = ALARM_GAIN) -> np.ndarray:
    """
    Square wave with linear attack/release ramps, float32 in [-gain, gain].
    """
    n = int(round(duration * sample_rate))
    t = np.arange(n, dtype=np.float64) / sample_rate
    wave = np.where(np.sin(2.0 * np.pi * frequency * t) >= 0.0, 1.0, -1.0)

    envelope = np.full(n, gain, dtype=np.float64)
    ramp = min(int(round(RAMP_SECONDS * sample_rate)), n // 2)
    if ramp > 0:
        envelope[:ramp] = np.linspace(0.0, gain, ramp, endpoint=False)
        envelope[n - ramp:] = np.linspace(gain, 0.0, ramp)

    return (wave * envelope).astype(np.float32)


def alarm_waveform(sample_rate: int, pattern: Sequence[Tuple[float, float, float]] = ALARM_PATTERN) -> np.ndarray:
    """
    Mix the beep pattern into one mono float32 buffer.
    """
    total = max(start + duration for start, _, duration in pattern)
    buffer = np.zeros(int(round(total * sample_rate)) + 1, dtype=np.float32)

    for start, frequency, duration in pattern:
        tone = square_tone(frequency, duration, sample_rate)
        offset = int(round(start * sample_rate))
        buffer[offset:offset + len(tone)] += tone[: len(buffer) - offset]

    return buffer


def to_int16(samples: np.ndarray, channels: int = 1) -> np.ndarray:
    pcm = (np.clip(samples, -1.0, 1.0) * 32767).astype(np.int16)
    if channels > 1:
        pcm = np.ascontiguousarray(np.repeat(pcm[:, None], channels, axis=1))
    return pcm


class AlarmPlayer:
    """
    Plays the alarm through pygame.mixer.

    The mixer is acquired on first use and released by close().
    Playback problems are logged, never raised: a missing sound card
    must not stop monitoring.
    """

    def __init__(self, sample_rate: int = 44100):
        self.sample_rate = sample_rate
        self._sound: Optional[pygame.mixer.Sound] = None
        self._owns_mixer = False

    @property
    def is_open(self) -> bool:
        return self._owns_mixer

    def _acquire(self) -> pygame.mixer.Sound:
        if self._sound is not None:
            return self._sound

        if pygame.mixer.get_init() is None:
            pygame.mixer.init(frequency=self.sample_rate, size=-16, channels=1)
            self._owns_mixer = True

        frequency, _, channels = pygame.mixer.get_init()
        pcm = to_int16(alarm_waveform(frequency), channels=channels)
        self._sound = pygame.sndarray.make_sound(pcm)
        return self._sound

    def play(self) -> bool:
        try:
            sound = self._acquire()
            sound.play()
            return True
        except pygame.error as e:
            logger.warning("Alarm playback failed: %s", e)
            return False

    def close(self) -> None:
        self._sound = None
        if self._owns_mixer:
            pygame.mixer.quit()
            self._owns_mixer = False

    def __enter__(self) -> "AlarmPlayer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class InactivityAlertSink:
    """
    Callable alert sink: logs every alert and sounds the alarm unless muted.
    """

    def __init__(self, player: Optional[AlarmPlayer] = None, muted: bool = False):
        self.player = player
        self.muted = muted
        self.alerts: List[str] = []

    @property
    def alert_count(self) -> int:
        return len(self.alerts)

    def __call__(self, track_id: str) -> None:
        self.alerts.append(track_id)
        logger.warning("Person %s has been inactive too long", track_id)

        if self.muted or self.player is None:
            return
        self.player.play()
