"""Qt-backed scheduler so engine timers run on the GUI event loop."""

from __future__ import annotations

import time
from typing import Any, Callable, Optional, Set

from PySide6.QtCore import QObject, QTimer

from memoria.core.scheduler import Scheduler, TimerHandle


class _QtTimerHandle(TimerHandle):
    def __init__(self, timer: QTimer, owner: "QtScheduler", callback: Callable[..., Any], args: tuple) -> None:
        super().__init__(callback, args)
        self._timer = timer
        self._owner = owner

    def cancel(self) -> None:
        if not self.active:
            return
        super().cancel()
        self._timer.stop()
        self._owner._release(self._timer)


class QtScheduler(Scheduler):
    """Single-shot ``QTimer`` per callback, all on the GUI thread."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._parent = parent
        self._timers: Set[QTimer] = set()

    def call_later(self, delay_ms: int, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        handle = _QtTimerHandle(timer, self, callback, args)

        def _on_timeout() -> None:
            self._release(timer)
            handle.fire()

        timer.timeout.connect(_on_timeout)
        self._timers.add(timer)
        timer.start(max(0, int(delay_ms)))
        return handle

    def now_ms(self) -> int:
        return int(time.monotonic() * 1000)

    def _release(self, timer: QTimer) -> None:
        if timer in self._timers:
            self._timers.discard(timer)
            timer.deleteLater()
