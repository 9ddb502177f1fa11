"""Timer scheduling used by the game engine.

Every delay in the engine (match confirmation, flip-back, selection unlock,
completion grace, notification settle) goes through a :class:`Scheduler`.
The desktop app plugs in a Qt-backed scheduler; :class:`ManualScheduler`
runs on a virtual clock and is what headless runs and the tests use.
"""

from __future__ import annotations

import heapq
import itertools
import logging
from typing import Any, Callable, List, Tuple

logger = logging.getLogger(__name__)


class TimerHandle:
    """A pending callback that can be cancelled before it fires."""

    def __init__(self, callback: Callable[..., Any], args: Tuple[Any, ...] = ()) -> None:
        self._callback = callback
        self._args = args
        self._cancelled = False
        self._fired = False

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        self._cancelled = True

    def fire(self) -> None:
        if not self.active:
            return
        self._fired = True
        self._callback(*self._args)


class Scheduler:
    """Interface for one-shot timers on a single cooperative event loop."""

    def call_later(self, delay_ms: int, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        raise NotImplementedError

    def now_ms(self) -> int:
        raise NotImplementedError


class ManualScheduler(Scheduler):
    """Virtual-clock scheduler. Time only moves when :meth:`advance` is called."""

    def __init__(self, start_ms: int = 0) -> None:
        self._now = start_ms
        self._queue: List[Tuple[int, int, TimerHandle]] = []
        self._counter = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        handle = TimerHandle(callback, args)
        due = self._now + max(0, int(delay_ms))
        heapq.heappush(self._queue, (due, next(self._counter), handle))
        return handle

    def now_ms(self) -> int:
        return self._now

    @property
    def pending(self) -> int:
        """Number of timers that are still waiting to fire."""
        return sum(1 for _, _, handle in self._queue if handle.active)

    def advance(self, delay_ms: int) -> None:
        """Move the clock forward, firing due timers in order.

        Timers scheduled by callbacks fire in the same call if they fall
        inside the window.
        """
        target = self._now + max(0, int(delay_ms))
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self._now = due
            handle.fire()
        self._now = target

    def run_pending(self) -> None:
        """Fire everything that is due right now (zero-delay callbacks)."""
        self.advance(0)

    def run_all(self, limit: int = 10_000) -> None:
        """Fire timers until the queue is empty."""
        for _ in range(limit):
            if not self._queue:
                return
            due = self._queue[0][0]
            self.advance(due - self._now)
        logger.warning("ManualScheduler.run_all stopped after %d iterations", limit)
