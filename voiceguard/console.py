"""
Console host for VoiceGuard.
Enrolls the speaker from the terminal, then runs voice control until Ctrl+C.
"""

import logging
import queue
import sys
from typing import Callable, Optional

from .core.alerts import ToneAlert
from .core.audio_source import MicrophoneProvider
from .core.config import Config
from .core.features import FrameFeatureExtractor
from .core.session import SessionMode, VerificationSession
from .core.timers import IntervalTimer


class QueueDispatcher:
    """
    Runs dispatched calls on the thread that drains it.

    Extractor and timer threads only post; the main thread executes, so the
    session is never entered from two threads at once.
    """

    def __init__(self):
        self._events: queue.Queue = queue.Queue()

    def __call__(self, fn, *args):
        self._events.put((fn, args))

    def run_until(
        self,
        done: Callable[[], bool],
        poll_interval: float = 0.1,
        on_idle: Optional[Callable[[], None]] = None,
    ):
        """Execute posted calls until `done()` is true."""
        while not done():
            try:
                fn, args = self._events.get(timeout=poll_interval)
            except queue.Empty:
                if on_idle is not None:
                    on_idle()
                continue
            fn(*args)


def _print_notification(message: str):
    print(f"\n>> {message}")


def _level_bar(history, width: int = 30, full_scale: float = 20.0) -> str:
    level = history[-1] if history else 0.0
    filled = min(width, int(width * level / full_scale))
    return "#" * filled + "-" * (width - filled)


def build_session(config: Config, dispatch: Callable[..., None]) -> VerificationSession:
    """Wire a session to the microphone, tone alert and console output."""
    settings = config.session_settings()
    return VerificationSession(
        provider=MicrophoneProvider(sample_rate=settings.sample_rate),
        extractor=FrameFeatureExtractor(settings),
        notify=_print_notification,
        alert=ToneAlert(**config.alert_tone),
        settings=settings,
        timer=IntervalTimer(),
        dispatch=dispatch,
    )


def run_console(config: Config) -> int:
    """
    Interactive enrollment followed by voice control.

    Returns:
        Process exit code
    """
    logger = logging.getLogger("voiceguard.console")
    dispatcher = QueueDispatcher()
    session = build_session(config, dispatcher)

    def show_progress():
        remaining = session.seconds_remaining
        bar = _level_bar(session.loudness_history)
        print(f"\r   [Recording... {remaining:4.0f}s left] {bar}", end="", flush=True)

    print("=" * 70)
    print("VoiceGuard - Speaker Verification")
    print("=" * 70)
    print(f"\nYou will speak for {session.settings.enrollment_duration:g} seconds.")
    print("Please speak clearly and continuously.")

    try:
        input("\nPress ENTER when ready to start...")
        if not session.begin_enrollment():
            return 1
        dispatcher.run_until(lambda: session.mode is not SessionMode.ENROLLING, on_idle=show_progress)
        print()

        if session.mode is not SessionMode.AWAITING_CONFIRMATION:
            return 1

        input("\nPress ENTER to start voice control (Ctrl+C to stop)...")
        if not session.start_monitoring():
            return 1
        dispatcher.run_until(lambda: session.mode is not SessionMode.MONITORING)
        return 0

    except KeyboardInterrupt:
        print("\n\nStopping voice control.")
        if session.mode is SessionMode.MONITORING:
            session.stop_monitoring()
        return 0
    except EOFError:
        logger.warning("Console input closed; exiting.")
        return 1
    finally:
        session.shutdown()


if __name__ == "__main__":
    sys.exit(run_console(Config()))
