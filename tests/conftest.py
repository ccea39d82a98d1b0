"""
Shared fixtures: fake audio sources, extractors and timers.

Nothing here touches real audio hardware.
"""
import numpy as np
import pytest

from voiceguard.core.errors import AcquisitionError, ExtractionStartError


class FakeStream:
    """Stand-in for sounddevice.InputStream; tests push buffers by hand."""

    def __init__(self, blocksize, callback, fail_start=False):
        self.blocksize = blocksize
        self.callback = callback
        self.fail_start = fail_start
        self.started = False
        self.stop_calls = 0
        self.closed = False

    def start(self):
        if self.fail_start:
            raise RuntimeError("device busy")
        self.started = True

    def stop(self):
        self.stop_calls += 1
        self.started = False

    def close(self):
        self.closed = True

    def push(self, samples):
        indata = np.asarray(samples, dtype=np.float32).reshape(-1, 1)
        self.callback(indata, len(indata), None, None)


class FakeSource:
    def __init__(self, fail_start=False):
        self.fail_start = fail_start
        self.closed = False
        self.streams = []

    def open_stream(self, blocksize, callback):
        stream = FakeStream(blocksize, callback, fail_start=self.fail_start)
        self.streams.append(stream)
        return stream

    def close(self):
        self.closed = True


class FakeProvider:
    def __init__(self, available=True):
        self.available = available
        self.acquired = []
        self.released = []

    def acquire(self):
        if not self.available:
            raise AcquisitionError("no input device")
        source = FakeSource()
        self.acquired.append(source)
        return source

    def release(self, source):
        source.close()
        self.released.append(source)


class FakeExtractor:
    """Synchronous extractor: emit() delivers a frame immediately."""

    def __init__(self, fail_start=False):
        self.fail_start = fail_start
        self.callback = None
        self.running = False
        self.start_calls = 0
        self.stop_calls = 0

    def start(self, source, callback):
        self.start_calls += 1
        if self.fail_start:
            raise ExtractionStartError("analyzer could not attach")
        self.callback = callback
        self.running = True

    def stop(self):
        self.stop_calls += 1
        self.running = False

    def emit(self, features, loudness=1.0):
        if self.running:
            self.callback(np.asarray(features, dtype=np.float64), loudness)


class FakeTimer:
    def __init__(self):
        self.interval = None
        self.callback = None

    @property
    def active(self):
        return self.callback is not None

    def start(self, interval, callback):
        self.interval = interval
        self.callback = callback

    def cancel(self):
        self.callback = None

    def fire(self, times=1):
        for _ in range(times):
            if self.callback is None:
                break
            self.callback()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def timer():
    return FakeTimer()
