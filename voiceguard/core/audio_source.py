# voiceguard/core/audio_source.py

"""
Microphone access through sounddevice.

MicrophoneProvider hands out at most one MicrophoneSource at a time; the
source opens mono float32 input streams for the feature extractor.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import sounddevice as sd

from .errors import AcquisitionError


class MicrophoneSource:
    """An acquired input device, ready to open capture streams."""

    def __init__(self, device: Optional[int | str], sample_rate: int, channels: int = 1):
        self.device = device
        self.sample_rate = sample_rate
        self.channels = channels
        self.closed = False

    def open_stream(self, blocksize: int, callback: Callable) -> sd.InputStream:
        """Create (not start) an input stream delivering `blocksize` frames per callback."""
        if self.closed:
            raise AcquisitionError("audio source has been released")
        return sd.InputStream(
            device=self.device,
            samplerate=self.sample_rate,
            channels=self.channels,
            blocksize=blocksize,
            dtype="float32",
            callback=callback,
        )

    def close(self):
        self.closed = True


class MicrophoneProvider:
    def __init__(self, sample_rate: int = 16000, device: Optional[int | str] = None):
        self.sample_rate = sample_rate
        self.device = device
        self.logger = logging.getLogger("voiceguard.audio")
        self._source: Optional[MicrophoneSource] = None

    def acquire(self) -> MicrophoneSource:
        """
        Check the input device and hand out a source.

        Raises:
            AcquisitionError: if no usable input device exists or the
                settings are rejected by the audio backend
        """
        if self._source is not None and not self._source.closed:
            return self._source

        try:
            info = sd.query_devices(self.device, kind="input")
            sd.check_input_settings(
                device=self.device,
                samplerate=self.sample_rate,
                channels=1,
                dtype="float32",
            )
        except (sd.PortAudioError, ValueError) as e:
            self.logger.error(f"Microphone unavailable: {e}")
            raise AcquisitionError(f"microphone unavailable: {e}") from e

        self.logger.info(f"Microphone acquired: {info['name']} @ {self.sample_rate} Hz")
        self._source = MicrophoneSource(self.device, self.sample_rate)
        return self._source

    def release(self, source: MicrophoneSource):
        source.close()
        if source is self._source:
            self._source = None
        self.logger.info("Microphone released.")
