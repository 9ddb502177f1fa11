"""Session controller: runs a minigame, scores it and reports the result."""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional, Tuple

from memoria.core.achievements import AchievementGateway
from memoria.core.config import GameConfig
from memoria.core.decks import Deck
from memoria.core.match_engine import MatchEngine
from memoria.core.models import (
    Achievement,
    BonusQualification,
    Card,
    CompletionSummary,
    Feedback,
    GameStats,
)
from memoria.core.notifications import NotificationQueueManager
from memoria.core.scheduler import Scheduler
from memoria.core.scoring import (
    calculate_efficiency,
    calculate_stars,
    check_bonus_qualification,
    performance_message,
)

logger = logging.getLogger(__name__)

SYNC_WARNING = "Your achievements could not be saved right now. Your score is kept on this screen."


class FeedbackSink:
    """Receives everything the engine wants the player to see.

    The default implementation ignores every event; the UI overrides what it
    renders. ``confirm_exit`` declines by default so that progress is never
    thrown away without an explicit answer.
    """

    def on_feedback(self, feedback: Feedback) -> None:
        pass

    def on_cards_changed(self, cards: Tuple[Card, ...]) -> None:
        pass

    def on_stats_changed(self, stats: GameStats) -> None:
        pass

    def on_game_completed(self, stats: GameStats, bonus: BonusQualification, message: str) -> None:
        pass

    def on_warning(self, message: str) -> None:
        pass

    def confirm_exit(self, on_closed: Callable[[bool], None]) -> None:
        on_closed(False)

    def show_notification(self, achievement: Achievement) -> None:
        pass

    def hide_notification(self, achievement: Achievement) -> None:
        pass


class GameSessionController:
    """Owns the stats of one activity and drives its :class:`MatchEngine`.

    On completion the controller finalizes stars and efficiency, shows the
    winner feedback straight away and then, on the next scheduler tick,
    hands a :class:`CompletionSummary` to the achievement gateway. Newly
    unlocked achievements go to the notification queue in the order the
    gateway returned them. A gateway failure only produces a warning; the
    finalized score stays.
    """

    def __init__(
        self,
        deck: Deck,
        gateway: AchievementGateway,
        scheduler: Scheduler,
        sink: Optional[FeedbackSink] = None,
        config: Optional[GameConfig] = None,
        notifications: Optional[NotificationQueueManager] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._deck = deck
        self._gateway = gateway
        self._scheduler = scheduler
        self._sink = sink or FeedbackSink()
        self._config = config or GameConfig()
        self._notifications = notifications or NotificationQueueManager(
            scheduler,
            self._config,
            on_show=self._sink.show_notification,
            on_hide=self._sink.hide_notification,
        )
        self._engine = MatchEngine(
            scheduler,
            self._config,
            on_cards_changed=self._sink.on_cards_changed,
            on_stats_changed=self._sink.on_stats_changed,
            on_feedback=self._sink.on_feedback,
            on_complete=self._on_engine_complete,
            rng=rng,
        )
        self._stats = GameStats()
        self._completed = False
        self._last_summary: Optional[CompletionSummary] = None
        self._failed_summary: Optional[CompletionSummary] = None

    @property
    def deck(self) -> Deck:
        return self._deck

    @property
    def engine(self) -> MatchEngine:
        return self._engine

    @property
    def stats(self) -> GameStats:
        return self._stats

    @property
    def notifications(self) -> NotificationQueueManager:
        return self._notifications

    @property
    def is_completed(self) -> bool:
        return self._completed

    @property
    def game_started(self) -> bool:
        return self._engine.game_started

    @property
    def last_summary(self) -> Optional[CompletionSummary]:
        return self._last_summary

    @property
    def sync_failed(self) -> bool:
        return self._failed_summary is not None

    def start_game(self) -> None:
        """Deal the first deck and start the preview."""
        self.reset_game()

    def flip(self, card_id: int) -> bool:
        return self._engine.flip(card_id)

    def reset_game(self) -> None:
        """Throw away the current round and deal a fresh, reshuffled deck.

        Pending engine timers are cancelled so nothing from the previous
        round can touch the new cards. An achievement sync that is already
        scheduled still runs, since it belongs to a finished game.
        """
        self._engine.cancel_timers()
        self._stats = GameStats()
        self._completed = False
        self._engine.build_deck(self._deck.symbols, self._deck.labels, stats=self._stats)
        self._engine.start_preview()
        logger.debug("Session reset for deck %s", self._deck.key)

    def complete_game(self) -> None:
        """Finalize the score, celebrate, and record the result."""
        if self._completed:
            logger.debug("complete_game called twice, ignoring")
            return
        self._completed = True
        stats = self._stats
        total_pairs = self._engine.total_pairs or self._deck.total_pairs
        stats.efficiency_percent = calculate_efficiency(total_pairs, stats.flip_count)
        stats.stars = calculate_stars(stats.errors, stats.flip_count, stats.completion_time_ms, total_pairs)
        bonus = check_bonus_qualification(stats, total_pairs)
        message = performance_message(stats.stars, stats.perfect_run, stats.flip_count, total_pairs)
        logger.info(
            "Deck %s finished with %d star(s), efficiency %d%%",
            self._deck.key,
            stats.stars,
            stats.efficiency_percent,
        )

        self._sink.on_feedback(Feedback.WINNER)
        self._sink.on_stats_changed(stats)
        self._sink.on_game_completed(stats, bonus, message)

        summary = self._build_summary(stats)
        self._last_summary = summary
        self._scheduler.call_later(0, self._record_completion, summary)

    def retry_achievement_sync(self) -> bool:
        """Send the last failed summary again. Returns False if nothing failed."""
        summary = self._failed_summary
        if summary is None:
            return False
        self._failed_summary = None
        self._scheduler.call_later(0, self._record_completion, summary)
        return True

    def request_exit(self, on_exit: Callable[[], None]) -> None:
        """Leave the activity, asking first if a round is in progress."""
        if self._stats.total_attempts > 0 and not self._completed:

            def on_closed(confirmed: bool) -> None:
                if confirmed:
                    self._leave(on_exit)
                else:
                    logger.debug("Exit cancelled by player")

            self._sink.confirm_exit(on_closed)
            return
        self._leave(on_exit)

    def _leave(self, on_exit: Callable[[], None]) -> None:
        self._engine.cancel_timers()
        on_exit()

    def _on_engine_complete(self, stats: GameStats) -> None:
        self.complete_game()

    def _build_summary(self, stats: GameStats) -> CompletionSummary:
        return CompletionSummary(
            stars=stats.stars,
            is_perfect=stats.perfect_run,
            completion_time_ms=stats.completion_time_ms,
            errors=stats.errors,
            activity_type=self._deck.activity_type or self._config.activity_type,
            showed_improvement=stats.errors > 0 and stats.stars > 1,
            used_help=False,
            took_time=stats.completion_time_ms > self._config.took_time_threshold_ms,
            deck_key=self._deck.key,
        )

    def _record_completion(self, summary: CompletionSummary) -> None:
        try:
            unlocked = self._gateway.record_completion(summary)
        except Exception as e:
            logger.warning("Could not record completion for deck %s: %s", summary.deck_key, e)
            self._failed_summary = summary
            self._sink.on_warning(SYNC_WARNING)
            return

        self._failed_summary = None
        if not unlocked:
            logger.info("No new achievements for deck %s", summary.deck_key)
        for achievement in unlocked:
            self._notifications.enqueue(achievement)
