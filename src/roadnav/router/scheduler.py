# scheduler.py
# Cancellable delayed tasks for the off-route debounce.
# ThreadedScheduler runs on wall-clock timers; ManualScheduler on a virtual clock.

import heapq
import itertools
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


class TimerHandle:
    """Handle returned by call_later(); cancel() is idempotent."""

    def __init__(self, callback: Callable[[], None], due: float) -> None:
        self.callback = callback
        self.due = due
        self._cancelled = False
        self._fired = False
        self._timer: Optional[threading.Timer] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()

    def _run(self) -> None:
        if self._cancelled or self._fired:
            return
        self._fired = True  # one-shot
        self.callback()


class Scheduler(ABC):
    """Source of time and delayed callbacks."""

    @abstractmethod
    def now(self) -> float:
        """Current time in seconds."""
        pass

    @abstractmethod
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay_s unless cancelled first."""
        pass


class ThreadedScheduler(Scheduler):
    """Wall-clock timers, one daemon threading.Timer per task."""

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback, self.now() + delay_s)
        timer = threading.Timer(max(0.0, delay_s), handle._run)
        timer.daemon = True
        handle._timer = timer
        timer.start()
        return handle


class ManualScheduler(Scheduler):
    """
    Virtual clock advanced explicitly.

    Usage:
        scheduler = ManualScheduler()
        handle = scheduler.call_later(3.0, fire)
        scheduler.advance(3.5)   # fire() runs here
    """

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback, self._now + max(0.0, delay_s))
        heapq.heappush(self._queue, (handle.due, next(self._counter), handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward, running due callbacks in order.

        Returns:
            Number of callbacks that ran.
        """
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if handle.cancelled:
                continue
            handle._run()
            ran += 1
        self._now = target
        return ran
