"""
Cooperative single-threaded scheduler.

Every timed behaviour in the app (the per-frame loop, the quiz countdown,
the feedback display delay) is a callback queued here and run from the main
loop via run_pending(). Nothing runs concurrently, so session state needs no
locking as long as competing timers are cancelled.
"""

import heapq
import itertools
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable reference to a scheduled callback."""

    __slots__ = ("_id", "_callback", "_period", "_cancelled", "name")

    def __init__(self, timer_id: int, callback: Callable, period: Optional[float], name: str):
        self._id = timer_id
        self._callback = callback
        self._period = period
        self._cancelled = False
        self.name = name

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def periodic(self) -> bool:
        return self._period is not None

    def __repr__(self):
        state = "cancelled" if self._cancelled else "pending"
        return f"TimerHandle({self.name!r}, {state})"


class Scheduler:
    """Min-heap of (due_time, seq, handle) driven by an injectable clock.

    Args:
        clock: Zero-arg callable returning seconds. Defaults to
            time.monotonic; tests pass a fake clock.
    """

    def __init__(self, clock: Callable[[], float] = None):
        self._clock = clock or time.monotonic
        self._queue = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._clock()

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def call_later(self, delay: float, callback: Callable, name: str = "") -> TimerHandle:
        """Run callback once after `delay` seconds."""
        handle = TimerHandle(next(self._seq), callback, None, name or callback.__name__)
        heapq.heappush(self._queue, (self._clock() + max(0.0, delay), handle._id, handle))
        return handle

    def call_every(self, period: float, callback: Callable, name: str = "") -> TimerHandle:
        """Run callback every `period` seconds until cancelled. First run after one period."""
        if period <= 0:
            raise ValueError(f"period must be positive, got {period}")
        handle = TimerHandle(next(self._seq), callback, period, name or callback.__name__)
        heapq.heappush(self._queue, (self._clock() + period, handle._id, handle))
        return handle

    @staticmethod
    def cancel(handle: Optional[TimerHandle]):
        """Cancel a handle; None is accepted so callers can cancel unconditionally."""
        if handle is not None:
            handle.cancel()

    def run_pending(self) -> int:
        """Run every callback whose due time has passed.

        Callbacks scheduled while this pass is running wait for the next
        pass, so a zero-delay re-schedule cannot spin. A periodic timer keeps
        its original cadence (next due = previous due + period) and catches up
        on missed periods one pass at a time.

        Returns:
            Number of callbacks executed
        """
        ran = 0
        now = self._clock()
        barrier = next(self._seq)
        deferred = []
        while self._queue and self._queue[0][0] <= now:
            entry = heapq.heappop(self._queue)
            due, seq, handle = entry
            if handle.cancelled:
                continue
            if seq > barrier:
                deferred.append(entry)
                continue
            if handle.periodic:
                heapq.heappush(self._queue, (due + handle._period, next(self._seq), handle))
            handle._callback()
            ran += 1
        for entry in deferred:
            heapq.heappush(self._queue, entry)
        return ran

    def time_until_next(self) -> Optional[float]:
        """Seconds until the next live callback, or None when idle."""
        self._drop_cancelled_head()
        if not self._queue:
            return None
        return max(0.0, self._queue[0][0] - self._clock())

    def _drop_cancelled_head(self):
        while self._queue and self._queue[0][2].cancelled:
            heapq.heappop(self._queue)

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def clear(self):
        """Cancel everything (shutdown)."""
        for _, _, handle in self._queue:
            handle.cancel()
        self._queue.clear()
