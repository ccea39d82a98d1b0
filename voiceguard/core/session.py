# voiceguard/core/session.py

"""
Verification session: the enrollment / monitoring state machine.

Lifecycle:
    IDLE -> ENROLLING -> AWAITING_CONFIRMATION -> MONITORING -> IDLE

ENROLLING feeds frames to the EnrollmentAggregator until the countdown
expires; the resulting profile moves the session to AWAITING_CONFIRMATION.
MONITORING scores every frame against the profile and decides Authorized /
Unauthorized per frame.

The session is owned by one thread. Extractor frames and timer ticks arrive
through `dispatch`, which the host uses to run them on that thread; stale
events from an earlier phase are recognised by generation number and dropped.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, List, Optional

import numpy as np

from .config import SessionSettings
from .enrollment import EnrollmentAggregator
from .errors import (
    AcquisitionError,
    ConfigurationError,
    DimensionMismatchError,
    EmptyEnrollmentError,
    ExtractionStartError,
    InvalidTransitionError,
    MissingProfileError,
)
from .similarity import cosine_similarity
from .timers import IntervalTimer


class SessionMode(Enum):
    IDLE = "idle"
    ENROLLING = "enrolling"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    MONITORING = "monitoring"


class AuthorizationState(Enum):
    UNKNOWN = "unknown"
    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class Decision:
    score: float
    state: AuthorizationState
    alerted: bool


_TRANSITIONS = {
    SessionMode.IDLE: {SessionMode.ENROLLING, SessionMode.MONITORING},
    SessionMode.ENROLLING: {
        SessionMode.ENROLLING,
        SessionMode.AWAITING_CONFIRMATION,
        SessionMode.IDLE,
    },
    SessionMode.AWAITING_CONFIRMATION: {
        SessionMode.ENROLLING,
        SessionMode.MONITORING,
        SessionMode.IDLE,
    },
    SessionMode.MONITORING: {
        SessionMode.ENROLLING,
        SessionMode.AWAITING_CONFIRMATION,
        SessionMode.IDLE,
    },
}

MSG_MIC_DENIED = "❌ Microphone access denied! Please allow microphone access."
MSG_ANALYZER_FAILED = "❌ Could not start audio analysis. Please try again."
MSG_RECORDING = "Recording... Please speak continuously."
MSG_RECORDED = "Recording completed! Start voice control when ready."
MSG_NO_VOICE = "Error: No voice data captured. Try again."
MSG_NO_PROFILE = "Error: No speaker voice recorded. Please scan the speaker first."
MSG_BUSY = "Finish the current step before starting voice control."
MSG_MONITORING = "Voice control mode active. Only the scanned speaker is allowed to speak."
MSG_MONITORING_STOPPED = "Voice control stopped."
MSG_UNAUTHORIZED = "❌ Unauthorized speaker detected!"
MSG_AUTHORIZED = "✅ Speaker recognized. All good!"
MSG_FEATURE_DEFECT = "Error: Voice features are inconsistent with the profile. Please scan again."


def _call_now(fn, *args):
    fn(*args)


class VerificationSession:
    """
    Owns the voice profile, the audio source and the session mode.

    Args:
        provider: audio source provider with acquire() / release(source)
        extractor: FrameFeatureExtractor-like object with start(source, cb) / stop()
        notify: called with every user-visible status message
        alert: called once per unauthorized frame (see alert_policy)
        settings: tunables; defaults when omitted
        timer: countdown timer with start(interval, cb) / cancel()
        dispatch: runs fn(*args) on the owning thread; immediate by default
    """

    def __init__(
        self,
        provider,
        extractor,
        notify: Callable[[str], None],
        alert: Callable[[], None],
        settings: Optional[SessionSettings] = None,
        timer=None,
        dispatch: Callable[..., None] = _call_now,
    ):
        self.settings = settings or SessionSettings()
        self.logger = logging.getLogger("voiceguard.session")

        self._provider = provider
        self._extractor = extractor
        self._notify = notify
        self._alert = alert
        self._timer = timer if timer is not None else IntervalTimer()
        self._dispatch = dispatch

        self._aggregator = EnrollmentAggregator()
        self._mode = SessionMode.IDLE
        self._profile: Optional[np.ndarray] = None
        self._authorization = AuthorizationState.UNKNOWN
        self._source = None
        self._loudness: Deque[float] = deque(maxlen=self.settings.loudness_history)
        self._ticks_left = 0

        # bumped whenever audio or the countdown (re)starts or stops
        self._audio_generation = 0
        self._timer_generation = 0

    # -------------- read-only state --------------

    @property
    def mode(self) -> SessionMode:
        return self._mode

    @property
    def profile(self) -> Optional[np.ndarray]:
        return self._profile

    @property
    def authorization(self) -> AuthorizationState:
        return self._authorization

    @property
    def loudness_history(self) -> List[float]:
        return list(self._loudness)

    @property
    def seconds_remaining(self) -> float:
        if self._mode is not SessionMode.ENROLLING:
            return 0.0
        return self._ticks_left * self.settings.countdown_interval

    @property
    def holds_audio_source(self) -> bool:
        return self._source is not None

    # -------------- commands --------------

    def begin_enrollment(self) -> bool:
        """Start a new enrollment; any running phase is stopped first."""
        if self._mode in (SessionMode.ENROLLING, SessionMode.MONITORING):
            self.logger.info(f"Stopping {self._mode.value} to start a new enrollment.")
            self._cancel_countdown()
            self._stop_audio()
            self._authorization = AuthorizationState.UNKNOWN

        self._aggregator.begin()
        self._loudness.clear()
        self._ticks_left = self.settings.countdown_ticks

        if not self._start_audio():
            self._enter(SessionMode.IDLE)
            return False

        self._enter(SessionMode.ENROLLING)
        self._start_countdown()
        self.logger.info(
            f"Enrollment started ({self.settings.enrollment_duration:g}s, "
            f"{self._ticks_left} ticks)"
        )
        self._send(MSG_RECORDING)
        return True

    def tick(self):
        """One countdown step; expiry finishes the enrollment."""
        if self._mode is not SessionMode.ENROLLING:
            return
        self._ticks_left = max(0, self._ticks_left - 1)
        self.logger.debug(f"Enrollment countdown: {self._ticks_left} ticks left")
        if self._ticks_left == 0:
            self.stop_enrollment()

    def stop_enrollment(self) -> bool:
        """Finish the current enrollment now and build the profile."""
        if self._mode is not SessionMode.ENROLLING:
            self.logger.warning(f"stop_enrollment ignored in mode {self._mode.value}")
            return False

        self._cancel_countdown()
        self._stop_audio()
        self._ticks_left = 0

        collected = self._aggregator.count
        try:
            profile = self._aggregator.finalize()
        except EmptyEnrollmentError as e:
            self.logger.warning(f"Enrollment failed: {e}")
            self._enter(SessionMode.IDLE)
            self._send(MSG_NO_VOICE)
            return False

        self._profile = profile
        self.logger.info(f"Voice profile enrolled from {collected} frames")
        self._enter(SessionMode.AWAITING_CONFIRMATION)
        self._send(MSG_RECORDED)
        return True

    def start_monitoring(self) -> bool:
        """Begin verifying incoming speech against the enrolled profile."""
        if self._mode in (SessionMode.ENROLLING, SessionMode.MONITORING):
            self.logger.warning(f"start_monitoring rejected in mode {self._mode.value}")
            self._send(MSG_BUSY)
            return False

        try:
            self._require_profile()
        except MissingProfileError as e:
            self.logger.warning(f"Cannot start monitoring: {e}")
            self._send(MSG_NO_PROFILE)
            return False

        self._authorization = AuthorizationState.UNKNOWN
        if not self._start_audio():
            self._enter(SessionMode.IDLE)
            return False

        self._enter(SessionMode.MONITORING)
        self.logger.info(
            f"Monitoring started (threshold={self.settings.similarity_threshold}, "
            f"alert_policy={self.settings.alert_policy})"
        )
        self._send(MSG_MONITORING)
        return True

    def stop_monitoring(self) -> bool:
        if self._mode is not SessionMode.MONITORING:
            self.logger.warning(f"stop_monitoring ignored in mode {self._mode.value}")
            return False

        self._stop_audio()
        self._authorization = AuthorizationState.UNKNOWN
        self._enter(SessionMode.IDLE)
        self._send(MSG_MONITORING_STOPPED)
        return True

    def shutdown(self):
        """Release everything; the session ends up IDLE."""
        self._cancel_countdown()
        self._stop_audio()
        self._authorization = AuthorizationState.UNKNOWN
        if self._mode is not SessionMode.IDLE:
            self._enter(SessionMode.IDLE)
        self.logger.info("Verification session shut down.")

    # -------------- frame handling --------------

    def on_frame(self, features: np.ndarray, loudness: float) -> Optional[Decision]:
        """Route one extracted frame according to the current mode."""
        if self._mode is SessionMode.ENROLLING:
            self._collect(features, loudness)
            return None
        if self._mode is SessionMode.MONITORING:
            return self._verify(features)
        self.logger.debug(f"Frame ignored in mode {self._mode.value}")
        return None

    def _collect(self, features: np.ndarray, loudness: float):
        try:
            self._aggregator.add(features)
        except DimensionMismatchError as e:
            self.logger.error(f"Enrollment aborted: {e}", exc_info=True)
            self._cancel_countdown()
            self._stop_audio()
            self._aggregator.begin()
            self._enter(SessionMode.IDLE)
            self._send(MSG_FEATURE_DEFECT)
            return
        self._loudness.append(loudness)

    def _verify(self, features: np.ndarray) -> Optional[Decision]:
        try:
            score = cosine_similarity(self._profile, features)
        except ConfigurationError as e:
            # feature lengths / magnitudes never differ with a stable extractor
            self.logger.error(f"Scoring defect, monitoring stopped: {e}", exc_info=True)
            self._stop_audio()
            self._authorization = AuthorizationState.UNKNOWN
            self._enter(SessionMode.AWAITING_CONFIRMATION)
            self._send(MSG_FEATURE_DEFECT)
            return None

        previous = self._authorization
        alerted = False
        if score < self.settings.similarity_threshold:
            self._authorization = AuthorizationState.UNAUTHORIZED
            if self.settings.alert_policy == "every_frame" or previous is not AuthorizationState.UNAUTHORIZED:
                self._fire_alert()
                alerted = True
        else:
            self._authorization = AuthorizationState.AUTHORIZED

        self.logger.debug(f"Frame similarity={score:.3f} -> {self._authorization.value}")
        if self._authorization is not previous:
            if self._authorization is AuthorizationState.UNAUTHORIZED:
                self.logger.warning(
                    f"Unauthorized speaker (similarity {score:.3f} < "
                    f"{self.settings.similarity_threshold})"
                )
                self._send(MSG_UNAUTHORIZED)
            else:
                self.logger.info(f"Speaker recognized (similarity {score:.3f})")
                self._send(MSG_AUTHORIZED)

        return Decision(score=score, state=self._authorization, alerted=alerted)

    # -------------- audio / countdown plumbing --------------

    def _start_audio(self) -> bool:
        """Acquire the source and start extraction; notify and clean up on failure."""
        try:
            if self._source is None:
                self._source = self._provider.acquire()
        except AcquisitionError as e:
            self.logger.error(f"Microphone error: {e}")
            self._send(MSG_MIC_DENIED)
            return False

        self._audio_generation += 1
        generation = self._audio_generation

        def deliver(features, loudness):
            self._dispatch(self._on_dispatched_frame, generation, features, loudness)

        try:
            self._extractor.start(self._source, deliver)
        except ExtractionStartError as e:
            self.logger.error(f"Extractor failed to start: {e}")
            self._release_source()
            self._send(MSG_ANALYZER_FAILED)
            return False
        return True

    def _stop_audio(self):
        self._audio_generation += 1
        self._extractor.stop()
        self._release_source()

    def _release_source(self):
        source, self._source = self._source, None
        if source is not None:
            self._provider.release(source)

    def _on_dispatched_frame(self, generation: int, features, loudness):
        if generation != self._audio_generation:
            self.logger.debug("Dropping frame from a stopped extraction session")
            return
        self.on_frame(features, loudness)

    def _start_countdown(self):
        self._timer_generation += 1
        generation = self._timer_generation

        def on_tick():
            self._dispatch(self._on_dispatched_tick, generation)

        self._timer.start(self.settings.countdown_interval, on_tick)

    def _cancel_countdown(self):
        self._timer_generation += 1
        self._timer.cancel()

    def _on_dispatched_tick(self, generation: int):
        if generation != self._timer_generation:
            return
        self.tick()

    # -------------- helpers --------------

    def _require_profile(self) -> np.ndarray:
        if self._profile is None:
            raise MissingProfileError("no voice profile has been enrolled")
        return self._profile

    def _enter(self, mode: SessionMode):
        if mode is not self._mode:
            if mode not in _TRANSITIONS[self._mode]:
                raise InvalidTransitionError(f"{self._mode.value} -> {mode.value} is not allowed")
            self.logger.info(f"Session mode: {self._mode.value} -> {mode.value}")
            self._mode = mode
        if mode is not SessionMode.MONITORING:
            self._authorization = AuthorizationState.UNKNOWN

    def _send(self, message: str):
        try:
            self._notify(message)
        except Exception as e:
            self.logger.error(f"Notification sink failed: {e}", exc_info=True)

    def _fire_alert(self):
        try:
            self._alert()
        except Exception as e:
            self.logger.error(f"Alert sink failed: {e}", exc_info=True)
