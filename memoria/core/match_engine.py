"""Card deck and flip/evaluate state machine for one memory-match session."""

from __future__ import annotations

import logging
import random
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from memoria.core.config import GameConfig
from memoria.core.models import Card, Feedback, GameStats
from memoria.core.scheduler import Scheduler, TimerHandle
from memoria.core.scoring import shuffle_array

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    PREVIEWING = "previewing"
    ACTIVE = "active"
    EVALUATING = "evaluating"
    COMPLETED = "completed"


class MatchEngine:
    """Runs the memory-match minigame.

    Lifecycle::

        IDLE -> PREVIEWING -> ACTIVE <-> EVALUATING -> COMPLETED

    The engine never waits on the UI. It changes card state on a fixed
    schedule and reports through plain callbacks:

      * ``on_cards_changed(cards)`` – any card turned, matched or the deck changed.
      * ``on_stats_changed(stats)`` – a counter moved.
      * ``on_feedback(Feedback)`` – ``SUCCESS`` after a match, ``ERROR`` after a miss.
      * ``on_complete(stats)`` – every pair found, after the grace delay.

    Only one pair can be under evaluation at a time: while two cards are
    selected every further flip is ignored until the selection unlock delay
    has passed.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: Optional[GameConfig] = None,
        *,
        on_cards_changed: Optional[Callable[[Tuple[Card, ...]], None]] = None,
        on_stats_changed: Optional[Callable[[GameStats], None]] = None,
        on_feedback: Optional[Callable[[Feedback], None]] = None,
        on_complete: Optional[Callable[[GameStats], None]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._scheduler = scheduler
        self._config = config or GameConfig()
        self._on_cards_changed = on_cards_changed
        self._on_stats_changed = on_stats_changed
        self._on_feedback = on_feedback
        self._on_complete = on_complete
        self._rng = rng

        self._state = EngineState.IDLE
        self._cards: List[Card] = []
        self._by_id: Dict[int, Card] = {}
        self._selected: List[Card] = []
        self._stats = GameStats()
        self._timers: List[TimerHandle] = []
        self._generation = 0
        self._started_at_ms = scheduler.now_ms()

    # -- read-only views ---------------------------------------------------

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def cards(self) -> Tuple[Card, ...]:
        return tuple(self._cards)

    @property
    def stats(self) -> GameStats:
        return self._stats

    @property
    def selected(self) -> Tuple[int, ...]:
        """Ids of the cards in the pending-selection buffer."""
        return tuple(card.id for card in self._selected)

    @property
    def total_pairs(self) -> int:
        return len(self._cards) // 2

    @property
    def game_started(self) -> bool:
        """True once the preview is over and until the session completes."""
        return self._state in (EngineState.ACTIVE, EngineState.EVALUATING)

    @property
    def showing_cards(self) -> bool:
        return self._state == EngineState.PREVIEWING

    @property
    def is_completed(self) -> bool:
        return self._state == EngineState.COMPLETED

    @property
    def progress(self) -> float:
        """Fraction of pairs found, 0.0 – 1.0."""
        if not self.total_pairs:
            return 0.0
        return self._stats.matches_found / self.total_pairs

    @property
    def elapsed_ms(self) -> int:
        """Play time since the preview ended (0 while previewing)."""
        if self._state in (EngineState.IDLE, EngineState.PREVIEWING):
            return 0
        if self._state == EngineState.COMPLETED:
            return self._stats.completion_time_ms
        return self._scheduler.now_ms() - self._started_at_ms

    # -- commands ----------------------------------------------------------

    def build_deck(
        self,
        symbols: Sequence[str],
        labels: Optional[Sequence[str]] = None,
        stats: Optional[GameStats] = None,
    ) -> Tuple[Card, ...]:
        """Create two cards per symbol, shuffle them and enter the preview state.

        Any timers left over from a previous deck are cancelled first.
        """
        if not symbols:
            raise ValueError("A deck needs at least one symbol")
        if len(set(symbols)) != len(symbols):
            raise ValueError("Deck symbols must be unique")
        if labels is not None and len(labels) != len(symbols):
            raise ValueError("labels must match symbols one to one")

        self.cancel_timers()
        pairs = []
        for index, symbol in enumerate(symbols):
            label = labels[index] if labels is not None else ""
            pairs.append((symbol, label))
            pairs.append((symbol, label))

        shuffled = shuffle_array(pairs, self._rng)
        self._cards = [
            Card(id=position, symbol=symbol, label=label, face_up=True)
            for position, (symbol, label) in enumerate(shuffled)
        ]
        self._by_id = {card.id: card for card in self._cards}
        self._selected = []
        self._stats = stats if stats is not None else GameStats()
        self._state = EngineState.PREVIEWING
        self._started_at_ms = self._scheduler.now_ms()
        logger.debug("Built deck with %d pairs", len(symbols))
        self._emit_cards()
        self._emit_stats()
        return self.cards

    def start_preview(self, duration_ms: Optional[int] = None) -> None:
        """Keep every card face up for ``duration_ms``, then start play."""
        if self._state != EngineState.PREVIEWING:
            logger.debug("start_preview ignored in state %s", self._state.value)
            return
        delay = self._config.preview_ms if duration_ms is None else duration_ms
        self._schedule(delay, self._end_preview)

    def flip(self, card_id: int) -> bool:
        """Turn a card face up. Returns False when the flip is ignored."""
        if self._state != EngineState.ACTIVE:
            logger.debug("Flip of card %s ignored in state %s", card_id, self._state.value)
            return False
        card = self._by_id.get(card_id)
        if card is None or card.face_up or card.matched or len(self._selected) >= 2:
            logger.debug("Flip of card %s ignored", card_id)
            return False

        card.face_up = True
        self._stats.flip_count += 1
        self._selected.append(card)
        self._emit_cards()

        if len(self._selected) == 2:
            self._evaluate()
        self._emit_stats()
        return True

    def cancel_timers(self) -> None:
        """Cancel every pending engine timer; late callbacks become no-ops."""
        for handle in self._timers:
            if handle.active:
                handle.cancel()
        self._timers = []
        self._generation += 1

    # -- internals ---------------------------------------------------------

    def _schedule(self, delay_ms: int, callback: Callable[..., None], *args) -> None:
        self._timers = [t for t in self._timers if t.active]
        handle = self._scheduler.call_later(delay_ms, self._guarded, self._generation, callback, args)
        self._timers.append(handle)

    def _guarded(self, generation: int, callback: Callable[..., None], args: tuple) -> None:
        if generation != self._generation:
            logger.debug("Dropping stale engine timer %s", getattr(callback, "__name__", callback))
            return
        callback(*args)

    def _end_preview(self) -> None:
        for card in self._cards:
            card.face_up = False
        self._state = EngineState.ACTIVE
        self._started_at_ms = self._scheduler.now_ms()
        logger.debug("Preview finished, play started")
        self._emit_cards()

    def _evaluate(self) -> None:
        first, second = self._selected
        self._stats.total_attempts += 1
        self._state = EngineState.EVALUATING

        if first.symbol == second.symbol:
            self._schedule(self._config.match_confirm_ms, self._confirm_match, first, second)
        else:
            self._stats.errors += 1
            self._stats.perfect_run = False
            self._schedule(self._config.mismatch_reset_ms, self._flip_back, first, second)

        self._schedule(self._config.selection_unlock_ms, self._unlock_selection)

    def _confirm_match(self, first: Card, second: Card) -> None:
        first.matched = True
        second.matched = True
        self._stats.matches_found += 1
        logger.debug("Pair %r found (%d/%d)", first.symbol, self._stats.matches_found, self.total_pairs)
        self._emit_cards()
        self._emit_stats()
        self._emit_feedback(Feedback.SUCCESS)
        if self._stats.matches_found == self.total_pairs:
            self._schedule(self._config.completion_grace_ms, self._complete)

    def _flip_back(self, first: Card, second: Card) -> None:
        for card in (first, second):
            if not card.matched:
                card.face_up = False
        self._emit_cards()
        self._emit_feedback(Feedback.ERROR)

    def _unlock_selection(self) -> None:
        self._selected = []
        if self._state == EngineState.EVALUATING:
            self._state = EngineState.ACTIVE

    def _complete(self) -> None:
        self._state = EngineState.COMPLETED
        self._stats.completion_time_ms = self._scheduler.now_ms() - self._started_at_ms
        logger.info(
            "Memory game completed: %d attempts, %d errors, %d ms",
            self._stats.total_attempts,
            self._stats.errors,
            self._stats.completion_time_ms,
        )
        if self._on_complete is not None:
            self._on_complete(self._stats)

    def _emit_cards(self) -> None:
        if self._on_cards_changed is not None:
            self._on_cards_changed(self.cards)

    def _emit_stats(self) -> None:
        if self._on_stats_changed is not None:
            self._on_stats_changed(self._stats)

    def _emit_feedback(self, feedback: Feedback) -> None:
        if self._on_feedback is not None:
            self._on_feedback(feedback)
