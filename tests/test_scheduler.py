"""
Tests for the Cooperative Scheduler
====================================
"""

import pytest
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.scheduler import Scheduler


class FakeClock:
    def __init__(self, start=0.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock=clock)


class TestCallLater:

    def test_runs_once_when_due(self, scheduler, clock):
        calls = []
        scheduler.call_later(2.0, lambda: calls.append(clock()))
        clock.advance(1.0)
        assert scheduler.run_pending() == 0
        clock.advance(1.0)
        assert scheduler.run_pending() == 1
        clock.advance(5.0)
        assert scheduler.run_pending() == 0
        assert calls == [2.0]

    def test_cancelled_callback_never_runs(self, scheduler, clock):
        calls = []
        handle = scheduler.call_later(1.0, lambda: calls.append(1))
        scheduler.cancel(handle)
        clock.advance(2.0)
        scheduler.run_pending()
        assert calls == []
        assert handle.cancelled

    def test_cancel_none_is_allowed(self, scheduler):
        scheduler.cancel(None)

    def test_due_order(self, scheduler, clock):
        order = []
        scheduler.call_later(2.0, lambda: order.append("late"))
        scheduler.call_later(1.0, lambda: order.append("early"))
        clock.advance(3.0)
        scheduler.run_pending()
        assert order == ["early", "late"]

    def test_zero_delay_reschedule_waits_for_next_pass(self, scheduler):
        """A callback re-queueing itself at zero delay runs once per pass."""
        calls = []

        def step():
            calls.append(1)
            scheduler.call_later(0.0, step)

        scheduler.call_later(0.0, step)
        assert scheduler.run_pending() == 1
        assert scheduler.run_pending() == 1
        assert len(calls) == 2


class TestCallEvery:

    def test_first_run_after_one_period(self, scheduler, clock):
        ticks = []
        scheduler.call_every(1.0, lambda: ticks.append(clock()))
        scheduler.run_pending()
        assert ticks == []
        for _ in range(3):
            clock.advance(1.0)
            scheduler.run_pending()
        assert ticks == [1.0, 2.0, 3.0]

    def test_cancel_stops_periodic(self, scheduler, clock):
        ticks = []
        handle = scheduler.call_every(1.0, lambda: ticks.append(1))
        clock.advance(1.0)
        scheduler.run_pending()
        handle.cancel()
        clock.advance(5.0)
        scheduler.run_pending()
        assert len(ticks) == 1
        assert scheduler.pending_count == 0

    def test_missed_periods_catch_up_one_per_pass(self, scheduler, clock):
        ticks = []
        scheduler.call_every(1.0, lambda: ticks.append(1))
        clock.advance(3.0)
        scheduler.run_pending()
        assert len(ticks) == 1
        scheduler.run_pending()
        scheduler.run_pending()
        assert len(ticks) == 3

    def test_invalid_period(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.call_every(0, lambda: None)


class TestBookkeeping:

    def test_time_until_next(self, scheduler, clock):
        assert scheduler.time_until_next() is None
        scheduler.call_later(2.5, lambda: None)
        clock.advance(1.0)
        assert scheduler.time_until_next() == pytest.approx(1.5)

    def test_clear(self, scheduler, clock):
        handle = scheduler.call_every(1.0, lambda: None)
        scheduler.call_later(1.0, lambda: None)
        assert scheduler.pending_count == 2
        scheduler.clear()
        assert scheduler.pending_count == 0
        assert handle.cancelled

    def test_now_ms(self, scheduler, clock):
        clock.advance(1.25)
        assert scheduler.now_ms() == 1250


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
