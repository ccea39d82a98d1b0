# voiceguard/core/alerts.py

"""
Audible alert for unauthorized speech.

Plays a short sine beep through the default output device. Playback is
non-blocking so the decision loop never waits on it.
"""

from __future__ import annotations

import logging

import numpy as np
import sounddevice as sd


class ToneAlert:
    def __init__(
        self,
        frequency: float = 880.0,
        duration: float = 0.25,
        volume: float = 0.5,
        sample_rate: int = 44100,
    ):
        self.sample_rate = sample_rate
        self.logger = logging.getLogger("voiceguard.alert")
        self._tone = self._make_tone(frequency, duration, volume, sample_rate)

    @staticmethod
    def _make_tone(frequency: float, duration: float, volume: float, sample_rate: int) -> np.ndarray:
        t = np.arange(int(duration * sample_rate)) / sample_rate
        tone = volume * np.sin(2 * np.pi * frequency * t)
        # 10 ms fade in/out so the beep does not click
        fade = min(len(tone) // 2, int(0.01 * sample_rate))
        if fade > 0:
            ramp = np.linspace(0.0, 1.0, fade)
            tone[:fade] *= ramp
            tone[-fade:] *= ramp[::-1]
        return tone.astype(np.float32)

    def __call__(self):
        try:
            sd.play(self._tone, self.sample_rate)
        except sd.PortAudioError as e:
            self.logger.error(f"Alert playback failed: {e}")
