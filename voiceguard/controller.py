# voiceguard/controller.py

from __future__ import annotations

import logging
from typing import Callable, Optional

from PyQt6 import QtCore

from .ui import VoiceGuardWindow
from .core.alerts import ToneAlert
from .core.audio_source import MicrophoneProvider
from .core.config import Config
from .core.features import FrameFeatureExtractor
from .core.session import VerificationSession


class QtIntervalTimer:
    """Countdown timer on the Qt event loop (start/cancel like IntervalTimer)."""

    def __init__(self, parent: Optional[QtCore.QObject] = None):
        self._timer = QtCore.QTimer(parent)
        self._timer.timeout.connect(self._on_timeout)
        self._callback: Optional[Callable[[], None]] = None

    def start(self, interval: float, callback: Callable[[], None]):
        self.cancel()
        self._callback = callback
        self._timer.start(int(interval * 1000))

    def cancel(self):
        self._timer.stop()
        self._callback = None

    def _on_timeout(self):
        if self._callback is not None:
            self._callback()


class VoiceGuardController(QtCore.QObject):
    """
    Connects the VoiceGuard window to the verification session.

    - Extractor frames arrive on a worker thread and are re-posted to the
      GUI thread through a queued signal, so the session only ever runs
      on the GUI thread.
    - A refresh timer pushes mode, countdown, authorization and loudness
      into the window.
    """

    # fn, args -> executed on the GUI thread
    _invoke = QtCore.pyqtSignal(object, object)

    notification = QtCore.pyqtSignal(str)

    REFRESH_MS = 100

    def __init__(self, window: VoiceGuardWindow, config: Config):
        super().__init__()
        self.window = window
        self.config = config
        self.logger = logging.getLogger("voiceguard.controller")

        self._invoke.connect(self._run_invoked, QtCore.Qt.ConnectionType.QueuedConnection)

        settings = config.session_settings()
        self.session = VerificationSession(
            provider=MicrophoneProvider(sample_rate=settings.sample_rate),
            extractor=FrameFeatureExtractor(settings),
            notify=self.notification.emit,
            alert=ToneAlert(**config.alert_tone),
            settings=settings,
            timer=QtIntervalTimer(self),
            dispatch=self.dispatch,
        )

        # ---- Wire UI signals ----
        self.notification.connect(self.window.set_notification)
        self.window.enroll_requested.connect(self.begin_enrollment)
        self.window.monitor_requested.connect(self.start_monitoring)
        self.window.stop_requested.connect(self.stop_monitoring)

        self._refresh_timer = QtCore.QTimer(self)
        self._refresh_timer.timeout.connect(self._refresh_view)
        self._refresh_timer.start(self.REFRESH_MS)

        self._refresh_view()
        self.logger.info("VoiceGuard controller ready.")

    def dispatch(self, fn, *args):
        """Thread-safe: schedule fn(*args) on the GUI thread."""
        self._invoke.emit(fn, args)

    @QtCore.pyqtSlot(object, object)
    def _run_invoked(self, fn, args):
        fn(*args)

    # -------------------------------------------------------------------------
    # UI -> session
    # -------------------------------------------------------------------------

    @QtCore.pyqtSlot()
    def begin_enrollment(self):
        self.logger.info("Enrollment requested from UI.")
        self.session.begin_enrollment()
        self._refresh_view()

    @QtCore.pyqtSlot()
    def start_monitoring(self):
        self.logger.info("Voice control requested from UI.")
        self.session.start_monitoring()
        self._refresh_view()

    @QtCore.pyqtSlot()
    def stop_monitoring(self):
        self.logger.info("Stop requested from UI.")
        self.session.stop_monitoring()
        self._refresh_view()

    def _refresh_view(self):
        session = self.session
        self.window.set_mode(session.mode.value, session.seconds_remaining)
        self.window.set_authorization(session.authorization.value)
        self.window.set_loudness(session.loudness_history)

    # -------------------------------------------------------------------------
    # SHUTDOWN
    # -------------------------------------------------------------------------

    def shutdown(self):
        """Clean shutdown when the app is closing."""
        self._refresh_timer.stop()
        self.session.shutdown()
        self.logger.info("VoiceGuard shutting down.")
