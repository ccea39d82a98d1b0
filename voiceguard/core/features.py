# voiceguard/core/features.py

"""
Frame feature extraction.

Turns fixed-size mono audio buffers into (MFCC vector, loudness) pairs.

- extract_frame_features(): pure per-buffer computation (librosa)
- FrameFeatureExtractor: owns one streaming session against an audio source.
  The audio callback only enqueues; a worker thread computes features and
  invokes the frame callback in arrival order.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Optional, Tuple

import librosa
import numpy as np

from .config import SessionSettings
from .errors import ExtractionError, ExtractionStartError


FrameCallback = Callable[[np.ndarray, float], None]

# About three seconds of audio at the default rate and buffer size
MAX_PENDING_BUFFERS = 100


def as_feature_vector(values) -> np.ndarray:
    """Copy values into a read-only 1-D float64 array."""
    vector = np.array(values, dtype=np.float64).reshape(-1)
    vector.setflags(write=False)
    return vector


def extract_frame_features(
    buffer: np.ndarray,
    sample_rate: int = 16000,
    buffer_size: int = 512,
    n_mfcc: int = 13,
    n_mels: int = 26,
    loudness_scale: float = 100.0,
) -> Tuple[np.ndarray, float]:
    """
    Compute MFCCs and scaled RMS loudness for one audio buffer.

    The buffer is analysed as a single un-centered frame of `buffer_size`
    samples; shorter buffers are zero-padded, longer ones truncated.

    Returns:
        (feature_vector, loudness)

    Raises:
        ExtractionError: if the buffer is empty, holds non-finite samples,
            or yields non-finite features
    """
    samples = np.asarray(buffer, dtype=np.float32).reshape(-1)
    if samples.size == 0:
        raise ExtractionError("empty audio buffer")
    if not np.all(np.isfinite(samples)):
        raise ExtractionError("audio buffer contains NaN or infinite samples")

    if samples.size < buffer_size:
        samples = np.pad(samples, (0, buffer_size - samples.size))
    elif samples.size > buffer_size:
        samples = samples[:buffer_size]

    mfcc = librosa.feature.mfcc(
        y=samples,
        sr=sample_rate,
        n_mfcc=n_mfcc,
        n_fft=buffer_size,
        hop_length=buffer_size,
        n_mels=n_mels,
        center=False,
    )
    rms = librosa.feature.rms(
        y=samples,
        frame_length=buffer_size,
        hop_length=buffer_size,
        center=False,
    )

    vector = mfcc[:, 0]
    if not np.all(np.isfinite(vector)):
        raise ExtractionError("MFCC computation produced non-finite values")

    loudness = float(rms[0, 0]) * loudness_scale
    if not np.isfinite(loudness):
        raise ExtractionError("RMS computation produced a non-finite value")

    return as_feature_vector(vector), loudness


class FrameFeatureExtractor:
    """
    Streams (FeatureVector, loudness) pairs from an audio source.

    At most one session is active; start() on a running extractor restarts
    it. stop() is idempotent and returns only after the worker has delivered
    every buffer it had already accepted.
    """

    def __init__(
        self,
        settings: Optional[SessionSettings] = None,
        max_pending: int = MAX_PENDING_BUFFERS,
    ):
        self.settings = settings or SessionSettings()
        self.max_pending = max_pending
        self.logger = logging.getLogger("voiceguard.extractor")

        self._lock = threading.Lock()
        self._stream = None
        self._thread: Optional[threading.Thread] = None
        self._buffers: Optional[queue.Queue] = None
        self._accepting = False

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._accepting

    @property
    def feature_size(self) -> int:
        return self.settings.n_mfcc

    def start(self, source, callback: FrameCallback):
        """
        Begin extracting from `source`, delivering frames to `callback`.

        Raises:
            ExtractionStartError: if the source is missing or closed, or its
                stream cannot be opened and started
        """
        if self._thread is not None:
            self.logger.info("Extractor already running; restarting.")
            self.stop()

        if source is None or getattr(source, "closed", False):
            raise ExtractionStartError("no open audio source to extract from")

        buffers: queue.Queue = queue.Queue(maxsize=self.max_pending)

        def on_audio(indata, frames, time_info, status):
            # Runs on the audio backend's thread
            if status:
                self.logger.debug(f"Audio stream status: {status}")
            samples = np.array(indata, dtype=np.float32).reshape(len(indata), -1)[:, 0]
            with self._lock:
                if not (self._accepting and self._buffers is buffers):
                    return
                if buffers.full():
                    # Worker is behind; drop the oldest buffer
                    try:
                        buffers.get_nowait()
                        self.logger.warning("Feature extractor falling behind; dropped an audio buffer.")
                    except queue.Empty:
                        pass
                buffers.put_nowait(samples)

        with self._lock:
            self._buffers = buffers
            self._accepting = True

        stream = None
        try:
            stream = source.open_stream(blocksize=self.settings.buffer_size, callback=on_audio)
            stream.start()
        except Exception as e:
            with self._lock:
                self._accepting = False
                self._buffers = None
            if stream is not None:
                self._close_stream(stream)
            self.logger.error(f"Feature extractor failed to start: {e}", exc_info=True)
            raise ExtractionStartError(f"could not start audio analysis: {e}") from e

        self._stream = stream
        self._thread = threading.Thread(
            target=self._process_loop,
            args=(buffers, callback),
            name="voiceguard-extractor",
            daemon=True,
        )
        self._thread.start()
        self.logger.info(
            f"Feature extractor started (buffer_size={self.settings.buffer_size}, "
            f"sample_rate={self.settings.sample_rate}, n_mfcc={self.settings.n_mfcc})"
        )

    def stop(self):
        """Stop extraction. Safe to call repeatedly."""
        with self._lock:
            self._accepting = False
            buffers, self._buffers = self._buffers, None
            stream, self._stream = self._stream, None
            thread, self._thread = self._thread, None

        if thread is None and stream is None:
            return

        if stream is not None:
            self._close_stream(stream)

        if buffers is not None:
            self._post_exit_signal(buffers, from_worker=thread is threading.current_thread())

        if thread is not None and thread is not threading.current_thread():
            thread.join()

        self.logger.info("Feature extractor stopped.")

    # -------------- internal --------------

    def _close_stream(self, stream):
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            self.logger.error(f"Error closing audio stream: {e}", exc_info=True)

    @staticmethod
    def _post_exit_signal(buffers: queue.Queue, from_worker: bool):
        if not from_worker:
            # The worker keeps draining, so a blocking put always completes
            buffers.put(None)
            return
        # Stopped from inside the frame callback: nothing left will be delivered
        while True:
            try:
                buffers.put_nowait(None)
                return
            except queue.Full:
                try:
                    buffers.get_nowait()
                except queue.Empty:
                    pass

    def _process_loop(self, buffers: queue.Queue, callback: FrameCallback):
        settings = self.settings
        while True:
            buffer = buffers.get()
            if buffer is None:  # Exit signal
                break

            try:
                features, loudness = extract_frame_features(
                    buffer,
                    sample_rate=settings.sample_rate,
                    buffer_size=settings.buffer_size,
                    n_mfcc=settings.n_mfcc,
                    n_mels=settings.n_mels,
                    loudness_scale=settings.loudness_scale,
                )
            except ExtractionError as e:
                self.logger.warning(f"Skipping audio buffer: {e}")
                continue
            except Exception as e:
                self.logger.error(f"Error in feature extraction: {e}", exc_info=True)
                continue

            try:
                callback(features, loudness)
            except Exception as e:
                self.logger.error(f"Frame callback failed: {e}", exc_info=True)
