"""Tests for memoria.core.session – completion, achievements and reset."""

from __future__ import annotations

import random
from typing import Dict, List, Optional

import pytest

from memoria.core.achievements import AchievementGateway, AchievementGatewayError
from memoria.core.config import GameConfig
from memoria.core.decks import Deck
from memoria.core.match_engine import EngineState
from memoria.core.models import Achievement, CompletionSummary, Feedback
from memoria.core.scheduler import ManualScheduler
from memoria.core.session import SYNC_WARNING, FeedbackSink, GameSessionController


def _achievement(key: str, ident: int) -> Achievement:
    return Achievement(id=ident, key=key, title=key.replace("_", " ").title())


class FakeGateway(AchievementGateway):
    def __init__(self, log: List[tuple], unlocks: Optional[List[Achievement]] = None) -> None:
        self.log = log
        self.unlocks = unlocks or []
        self.summaries: List[CompletionSummary] = []
        self.failures = 0

    def record_completion(self, summary: CompletionSummary) -> List[Achievement]:
        self.log.append(("gateway", summary.stars))
        self.summaries.append(summary)
        if self.failures:
            self.failures -= 1
            raise AchievementGatewayError("server unreachable")
        return list(self.unlocks)


class RecordingSink(FeedbackSink):
    def __init__(self, log: List[tuple]) -> None:
        self.log = log
        self.feedback: List[Feedback] = []
        self.warnings: List[str] = []
        self.shown: List[str] = []
        self.completed = []
        self.confirm_answer: Optional[bool] = None
        self.confirm_requests = 0

    def on_feedback(self, feedback: Feedback) -> None:
        self.log.append(("feedback", feedback))
        self.feedback.append(feedback)

    def on_game_completed(self, stats, bonus, message) -> None:
        self.completed.append((stats.stars, bonus.qualified, message))

    def on_warning(self, message: str) -> None:
        self.warnings.append(message)

    def confirm_exit(self, on_closed) -> None:
        self.confirm_requests += 1
        if self.confirm_answer is not None:
            on_closed(self.confirm_answer)

    def show_notification(self, achievement: Achievement) -> None:
        self.shown.append(achievement.key)


DECK = Deck(
    key="deck1",
    name="Animals",
    symbols=["🐶", "🐱", "🐰"],
    labels=["Dog", "Cat", "Rabbit"],
    activity_type="Visual memory",
)


@pytest.fixture()
def log() -> List[tuple]:
    return []


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def sink(log) -> RecordingSink:
    return RecordingSink(log)


@pytest.fixture()
def gateway(log) -> FakeGateway:
    return FakeGateway(log)


@pytest.fixture()
def controller(gateway, scheduler, sink) -> GameSessionController:
    return GameSessionController(DECK, gateway, scheduler, sink=sink, rng=random.Random(11))


def _pairs(controller: GameSessionController) -> Dict[str, List[int]]:
    pairs: Dict[str, List[int]] = {}
    for card in controller.engine.cards:
        pairs.setdefault(card.symbol, []).append(card.id)
    return pairs


def _begin(controller: GameSessionController, scheduler: ManualScheduler) -> None:
    controller.start_game()
    scheduler.advance(4000)


def _play_perfect(controller: GameSessionController, scheduler: ManualScheduler) -> None:
    _begin(controller, scheduler)
    for a, b in _pairs(controller).values():
        controller.flip(a)
        controller.flip(b)
        scheduler.advance(1200)
    scheduler.advance(1000)


def _one_mismatch(controller: GameSessionController) -> None:
    cards = controller.engine.cards
    other = next(card for card in cards if card.symbol != cards[0].symbol)
    controller.flip(cards[0].id)
    controller.flip(other.id)


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------

class TestCompleteGame:
    def test_perfect_game_scores_three_stars(self, controller, scheduler, sink):
        _play_perfect(controller, scheduler)
        assert controller.is_completed is True
        assert controller.stats.stars == 3
        assert controller.stats.efficiency_percent == 100
        assert controller.stats.perfect_run is True
        assert sink.completed[0][0] == 3
        assert sink.completed[0][1] is True

    def test_winner_shown_before_gateway_call(self, controller, scheduler, log):
        _play_perfect(controller, scheduler)
        winner_at = log.index(("feedback", Feedback.WINNER))
        gateway_at = next(i for i, entry in enumerate(log) if entry[0] == "gateway")
        assert winner_at < gateway_at

    def test_gateway_called_on_next_tick(self, controller, scheduler, gateway):
        controller.start_game()
        controller.complete_game()
        assert gateway.summaries == []
        scheduler.run_pending()
        assert len(gateway.summaries) == 1

    def test_summary_fields(self, controller, scheduler, gateway):
        _play_perfect(controller, scheduler)
        summary = gateway.summaries[0]
        assert summary.stars == 3
        assert summary.is_perfect is True
        assert summary.errors == 0
        assert summary.activity_type == "Visual memory"
        assert summary.deck_key == "deck1"
        assert summary.used_help is False
        assert summary.took_time is False
        assert summary.showed_improvement is False
        assert summary.completion_time_ms == controller.stats.completion_time_ms
        assert controller.last_summary == summary

    def test_slow_game_took_time(self, gateway, scheduler, sink):
        controller = GameSessionController(
            DECK, gateway, scheduler, sink=sink, config=GameConfig(took_time_threshold_ms=1000)
        )
        _play_perfect(controller, scheduler)
        assert gateway.summaries[0].took_time is True

    def test_improvement_flag_with_errors(self, controller, scheduler, gateway):
        _begin(controller, scheduler)
        _one_mismatch(controller)
        scheduler.advance(1200)
        for a, b in _pairs(controller).values():
            controller.flip(a)
            controller.flip(b)
            scheduler.advance(1200)
        scheduler.advance(1000)
        summary = gateway.summaries[0]
        assert summary.errors == 1
        assert summary.is_perfect is False
        assert summary.stars >= 2
        assert summary.showed_improvement is True

    def test_complete_twice_is_ignored(self, controller, scheduler, gateway, sink):
        _play_perfect(controller, scheduler)
        controller.complete_game()
        scheduler.run_all()
        assert len(gateway.summaries) == 1
        assert sink.feedback.count(Feedback.WINNER) == 1


# ---------------------------------------------------------------------------
# Achievements
# ---------------------------------------------------------------------------

class TestAchievementDelivery:
    def test_unlocks_queued_in_gateway_order(self, controller, scheduler, gateway, sink):
        gateway.unlocks = [_achievement("first_game", 1), _achievement("perfect_game", 4)]
        _play_perfect(controller, scheduler)
        assert sink.shown == ["first_game"]
        assert controller.notifications.pending == 1
        controller.notifications.on_dismissed()
        scheduler.advance(1000)
        assert sink.shown == ["first_game", "perfect_game"]

    def test_no_unlocks_no_notifications(self, controller, scheduler, sink):
        _play_perfect(controller, scheduler)
        assert sink.shown == []
        assert sink.warnings == []


class TestPersistenceFailure:
    def test_warning_and_score_kept(self, controller, scheduler, gateway, sink):
        gateway.failures = 1
        _play_perfect(controller, scheduler)
        assert sink.warnings == [SYNC_WARNING]
        assert controller.stats.stars == 3
        assert controller.sync_failed is True
        assert Feedback.WINNER in sink.feedback

    def test_no_automatic_retry(self, controller, scheduler, gateway):
        gateway.failures = 1
        _play_perfect(controller, scheduler)
        scheduler.run_all()
        assert len(gateway.summaries) == 1

    def test_manual_retry(self, controller, scheduler, gateway, sink):
        gateway.failures = 1
        gateway.unlocks = [_achievement("first_game", 1)]
        _play_perfect(controller, scheduler)
        assert controller.retry_achievement_sync() is True
        scheduler.run_pending()
        assert controller.sync_failed is False
        assert sink.shown == ["first_game"]
        assert gateway.summaries[0] == gateway.summaries[1]

    def test_retry_without_failure(self, controller, scheduler):
        _play_perfect(controller, scheduler)
        assert controller.retry_achievement_sync() is False

    def test_any_exception_is_contained(self, controller, scheduler, gateway, sink, monkeypatch):
        def _boom(summary):
            raise ConnectionError("offline")

        monkeypatch.setattr(gateway, "record_completion", _boom)
        _play_perfect(controller, scheduler)
        assert sink.warnings == [SYNC_WARNING]

    def test_reset_after_failure(self, controller, scheduler, gateway):
        gateway.failures = 1
        _play_perfect(controller, scheduler)
        controller.reset_game()
        assert controller.stats.matches_found == 0
        assert controller.engine.selected == ()
        assert controller.game_started is False
        assert controller.is_completed is False


# ---------------------------------------------------------------------------
# Reset
# ---------------------------------------------------------------------------

class TestResetGame:
    def test_defaults_restored(self, controller, scheduler):
        _begin(controller, scheduler)
        _one_mismatch(controller)
        controller.reset_game()
        stats = controller.stats
        assert (stats.total_attempts, stats.errors, stats.flip_count, stats.matches_found) == (0, 0, 0, 0)
        assert stats.perfect_run is True
        assert controller.engine.state == EngineState.PREVIEWING

    def test_pending_timers_cancelled(self, controller, scheduler, sink):
        _begin(controller, scheduler)
        _one_mismatch(controller)
        controller.reset_game()
        scheduler.advance(1500)
        assert Feedback.ERROR not in sink.feedback
        assert all(card.face_up for card in controller.engine.cards)

    def test_new_preview_starts(self, controller, scheduler):
        _begin(controller, scheduler)
        controller.reset_game()
        scheduler.advance(4000)
        assert controller.game_started is True

    def test_stats_shared_with_engine(self, controller, scheduler):
        _begin(controller, scheduler)
        controller.reset_game()
        assert controller.engine.stats is controller.stats


# ---------------------------------------------------------------------------
# Exit guard
# ---------------------------------------------------------------------------

class TestRequestExit:
    def test_exit_immediately_without_attempts(self, controller, scheduler, sink):
        _begin(controller, scheduler)
        exits = []
        controller.request_exit(lambda: exits.append(True))
        assert exits == [True]
        assert sink.confirm_requests == 0

    def test_confirmation_required_mid_game(self, controller, scheduler, sink):
        _begin(controller, scheduler)
        _one_mismatch(controller)
        exits = []
        controller.request_exit(lambda: exits.append(True))
        assert sink.confirm_requests == 1
        assert exits == []

    def test_declined(self, controller, scheduler, sink):
        _begin(controller, scheduler)
        _one_mismatch(controller)
        sink.confirm_answer = False
        exits = []
        controller.request_exit(lambda: exits.append(True))
        assert exits == []
        assert controller.stats.total_attempts == 1

    def test_confirmed(self, controller, scheduler, sink):
        _begin(controller, scheduler)
        _one_mismatch(controller)
        sink.confirm_answer = True
        exits = []
        controller.request_exit(lambda: exits.append(True))
        assert exits == [True]
        scheduler.advance(2000)
        assert Feedback.ERROR not in sink.feedback

    def test_no_prompt_after_completion(self, controller, scheduler, sink):
        _play_perfect(controller, scheduler)
        exits = []
        controller.request_exit(lambda: exits.append(True))
        assert exits == [True]
        assert sink.confirm_requests == 0

    def test_default_sink_never_discards_progress(self, gateway, scheduler):
        controller = GameSessionController(DECK, gateway, scheduler)
        _begin(controller, scheduler)
        _one_mismatch(controller)
        exits = []
        controller.request_exit(lambda: exits.append(True))
        assert exits == []
