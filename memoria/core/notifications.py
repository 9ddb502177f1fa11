"""One-at-a-time delivery of achievement notifications."""

from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, Optional

from memoria.core.config import GameConfig
from memoria.core.models import Achievement, NotificationQueueEntry
from memoria.core.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class NotificationQueueManager:
    """FIFO queue that shows at most one achievement notification at a time.

    ``on_show(achievement)`` is called when an entry becomes visible and
    ``on_hide(achievement)`` when the player dismisses it. After a dismissal
    the queue waits for the settle delay before showing the next entry.
    Achievements that arrive while an entry is visible, or during the settle
    delay, simply wait their turn.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: Optional[GameConfig] = None,
        *,
        on_show: Optional[Callable[[Achievement], None]] = None,
        on_hide: Optional[Callable[[Achievement], None]] = None,
    ) -> None:
        self._scheduler = scheduler
        self._settle_ms = (config or GameConfig()).notification_settle_ms
        self._on_show = on_show
        self._on_hide = on_hide
        self._queue: Deque[NotificationQueueEntry] = deque()
        self._current: Optional[NotificationQueueEntry] = None
        self._settle_timer: Optional[TimerHandle] = None

    @property
    def current(self) -> Optional[Achievement]:
        """The achievement on screen, if any."""
        if self._current is None:
            return None
        return self._current.achievement

    @property
    def pending(self) -> int:
        """Number of entries waiting behind the visible one."""
        return len(self._queue)

    @property
    def is_busy(self) -> bool:
        return self._current is not None or self._is_settling()

    def enqueue(self, achievement: Achievement) -> None:
        self._queue.append(NotificationQueueEntry(achievement=achievement))
        logger.debug("Queued notification for %r (%d waiting)", achievement.key, len(self._queue))
        if not self.is_busy:
            self._promote_next()

    def on_dismissed(self) -> None:
        """The player closed the visible notification."""
        entry = self._current
        if entry is None:
            logger.debug("Dismiss ignored, no notification visible")
            return
        entry.visible = False
        self._current = None
        if self._on_hide is not None:
            self._on_hide(entry.achievement)
        self._settle_timer = self._scheduler.call_later(self._settle_ms, self._after_settle)

    def _is_settling(self) -> bool:
        return self._settle_timer is not None and self._settle_timer.active

    def _after_settle(self) -> None:
        self._settle_timer = None
        self._promote_next()

    def _promote_next(self) -> None:
        if self._current is not None or not self._queue:
            return
        entry = self._queue.popleft()
        entry.visible = True
        self._current = entry
        logger.info("Showing achievement %r", entry.achievement.title)
        if self._on_show is not None:
            self._on_show(entry.achievement)
