"""
Tests for the cancellable timer queue and the manual clock.
"""

import pytest


class TestTimerQueue:
    """Tests for TimerQueue."""

    def test_pop_due_in_deadline_order(self):
        from slopwatch.engine.timers import TimerQueue

        timers = TimerQueue()
        timers.schedule(30.0, "c")
        timers.schedule(10.0, "a")
        timers.schedule(20.0, "b")

        due = timers.pop_due(25.0)

        assert [h.key for h in due] == ["a", "b"]
        assert all(h.fired for h in due)
        assert len(timers) == 1
        assert timers.next_deadline() == 30.0

    def test_same_deadline_keeps_schedule_order(self):
        from slopwatch.engine.timers import TimerQueue

        timers = TimerQueue()
        timers.schedule(5.0, "first")
        timers.schedule(5.0, "second")

        assert [h.key for h in timers.pop_due(5.0)] == ["first", "second"]

    def test_cancel_is_idempotent(self):
        from slopwatch.engine.timers import TimerQueue

        timers = TimerQueue()
        handle = timers.schedule(10.0, "a")

        assert timers.cancel(handle) is True
        assert timers.cancel(handle) is False
        assert timers.cancel(None) is False
        assert timers.pop_due(100.0) == []
        assert len(timers) == 0

    def test_cancel_after_fire_is_a_noop(self):
        from slopwatch.engine.timers import TimerQueue

        timers = TimerQueue()
        handle = timers.schedule(1.0, "a")
        timers.pop_due(1.0)

        assert timers.cancel(handle) is False
        assert not handle.active

    def test_next_deadline_skips_cancelled(self):
        from slopwatch.engine.timers import TimerQueue

        timers = TimerQueue()
        early = timers.schedule(1.0, "a")
        timers.schedule(2.0, "b")
        timers.cancel(early)

        assert timers.next_deadline() == 2.0

    def test_clear(self):
        from slopwatch.engine.timers import TimerQueue

        timers = TimerQueue()
        handle = timers.schedule(1.0, "a")
        timers.clear()

        assert handle.cancelled
        assert timers.next_deadline() is None
        assert len(timers) == 0


class TestManualClock:
    """Tests for ManualClock."""

    def test_advance_and_set(self):
        from slopwatch.engine.clock import ManualClock

        clock = ManualClock(100.0)

        assert clock() == 100.0
        assert clock.advance(2.5) == 102.5
        clock.set(50.0)
        assert clock.now() == 50.0

    def test_cannot_go_backwards(self):
        from slopwatch.engine.clock import ManualClock

        with pytest.raises(ValueError):
            ManualClock().advance(-1)
