"""Tests for the thread-based countdown timer."""
import threading

from voiceguard.core.timers import IntervalTimer


class TestIntervalTimer:

    def test_ticks_until_cancelled(self):
        ticked = threading.Event()
        count = []

        def on_tick():
            count.append(1)
            if len(count) >= 3:
                ticked.set()

        timer = IntervalTimer()
        timer.start(0.01, on_tick)
        assert ticked.wait(timeout=2)
        timer.cancel()

        seen = len(count)
        assert not timer.is_active
        threading.Event().wait(0.05)
        assert len(count) == seen

    def test_cancel_is_idempotent(self):
        timer = IntervalTimer()
        timer.cancel()
        timer.start(10.0, lambda: None)
        timer.cancel()
        timer.cancel()
        assert not timer.is_active

    def test_restart_replaces_previous_schedule(self):
        first = []
        second = threading.Event()

        timer = IntervalTimer()
        timer.start(10.0, lambda: first.append(1))
        timer.start(0.01, second.set)

        assert second.wait(timeout=2)
        timer.cancel()
        assert first == []

    def test_cancel_from_inside_tick(self):
        done = threading.Event()
        timer = IntervalTimer()

        def on_tick():
            timer.cancel()
            done.set()

        timer.start(0.01, on_tick)
        assert done.wait(timeout=2)
        assert not timer.is_active
