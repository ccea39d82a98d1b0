# voiceguard/core/timers.py

"""
Countdown timers.

IntervalTimer calls back every `interval` seconds from a background thread
until cancelled. The Qt host uses QtIntervalTimer (controller.py) with the
same start/cancel interface.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional


class IntervalTimer:
    def __init__(self):
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_active(self) -> bool:
        return self._stop_event is not None and not self._stop_event.is_set()

    def start(self, interval: float, callback: Callable[[], None]):
        """Start ticking. A running timer is cancelled first."""
        self.cancel()

        stop_event = threading.Event()

        def loop():
            while not stop_event.wait(interval):
                callback()

        self._stop_event = stop_event
        self._thread = threading.Thread(target=loop, name="voiceguard-timer", daemon=True)
        self._thread.start()

    def cancel(self):
        """Stop ticking. Safe to call repeatedly, including from a tick."""
        if self._stop_event is not None:
            self._stop_event.set()
        thread, self._thread = self._thread, None
        self._stop_event = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)
