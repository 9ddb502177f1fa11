"""Achievement definitions and the gateway that records finished games."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Optional

import yaml

from memoria.core.models import Achievement, AchievementProgress, CompletionSummary
from memoria.core.progress import PlayerTotals, ProgressStore

logger = logging.getLogger(__name__)

FAST_COMPLETION_MS = 120_000
EARLY_MORNING_HOUR = 8
EVENING_HOUR = 19

CONDITIONS = (
    "games_completed",
    "stars_earned",
    "perfect_game",
    "fast_completion",
    "consecutive_days",
    "weekend_play",
    "early_morning_play",
    "evening_play",
)


class AchievementGatewayError(RuntimeError):
    """Recording a completed game failed; nothing was persisted."""


class AchievementGateway:
    """Persists game completions and reports newly unlocked achievements.

    ``record_completion`` must be safe to call again with the same summary
    after a failure, and must never report an achievement twice.
    """

    def record_completion(self, summary: CompletionSummary) -> List[Achievement]:
        raise NotImplementedError


def default_achievements_path() -> Path:
    return Path(__file__).resolve().parent.parent / "data" / "achievements.yaml"


def load_achievements(path: Optional[Path] = None) -> List[Achievement]:
    """Read achievement definitions from YAML.

    Raises ``ValueError`` for malformed entries or unknown conditions.
    """
    source = path or default_achievements_path()
    raw = yaml.safe_load(source.read_text(encoding="utf-8"))
    if not raw or not isinstance(raw, dict) or not isinstance(raw.get("achievements"), list):
        raise ValueError(f"{source.name}: expected YAML with an 'achievements' list")

    achievements: List[Achievement] = []
    seen: set[str] = set()
    for index, item in enumerate(raw["achievements"], start=1):
        if not isinstance(item, dict):
            raise ValueError(f"{source.name}: entry {index} is not a mapping")
        key = item.get("key")
        title = item.get("title")
        condition = item.get("condition")
        if not key or not isinstance(key, str):
            raise ValueError(f"{source.name}: entry {index} missing 'key'")
        if key in seen:
            raise ValueError(f"{source.name}: duplicate key {key!r}")
        if not title or not isinstance(title, str):
            raise ValueError(f"{source.name}: {key} missing 'title'")
        if condition not in CONDITIONS:
            raise ValueError(f"{source.name}: {key} has unknown condition {condition!r}")
        seen.add(key)
        achievements.append(
            Achievement(
                id=int(item.get("id", index)),
                key=key,
                title=title.strip(),
                description=str(item.get("description", "")).strip(),
                icon=str(item.get("icon", "")),
                category=str(item.get("category", "completion")),
                rarity=str(item.get("rarity", "common")),
                points=int(item.get("points", 0)),
                condition=condition,
                max_progress=max(1, int(item.get("max_progress", 1))),
            )
        )
    return achievements


def consecutive_days(play_dates: List[str], today: date) -> int:
    """Length of the run of consecutive play days ending today."""
    played = set(play_dates)
    run = 0
    day = today
    while day.isoformat() in played:
        run += 1
        day -= timedelta(days=1)
    return run


class LocalAchievementGateway(AchievementGateway):
    """Evaluates achievements on the device and stores them in a :class:`ProgressStore`."""

    def __init__(
        self,
        store: ProgressStore,
        achievements: Optional[List[Achievement]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._achievements = achievements if achievements is not None else load_achievements()
        self._clock = clock

    @property
    def achievements(self) -> List[Achievement]:
        return list(self._achievements)

    def progress_for(self, key: str) -> AchievementProgress:
        return self._store.get_achievement(key)

    def record_completion(self, summary: CompletionSummary) -> List[Achievement]:
        now = self._clock()
        fast = summary.completion_time_ms < FAST_COMPLETION_MS
        totals = self._store.record_game(
            stars=summary.stars,
            perfect=summary.is_perfect,
            fast=fast,
            play_date=now.date().isoformat(),
        )
        if summary.deck_key:
            self._store.update_deck_progress(summary.deck_key, summary.stars, summary.completion_time_ms)

        newly_unlocked: List[Achievement] = []
        for achievement in self._achievements:
            state = self._store.get_achievement(achievement.key)
            if state.unlocked:
                continue
            value = min(self._evaluate(achievement, totals, now), achievement.max_progress)
            updated = replace(state, progress=max(state.progress, value))
            if updated.progress >= achievement.max_progress:
                updated = replace(updated, unlocked=True, unlocked_at=now.isoformat(timespec="seconds"))
                newly_unlocked.append(achievement)
            self._store.set_achievement(achievement.key, updated)

        try:
            self._store.save()
        except OSError as e:
            self._store.reload()
            raise AchievementGatewayError(f"Could not save progress: {e}") from e

        if newly_unlocked:
            logger.info("Unlocked %d achievement(s): %s", len(newly_unlocked), [a.key for a in newly_unlocked])
        return newly_unlocked

    def _evaluate(self, achievement: Achievement, totals: PlayerTotals, now: datetime) -> int:
        condition = achievement.condition
        values: Dict[str, Callable[[], int]] = {
            "games_completed": lambda: totals.games_completed,
            "stars_earned": lambda: totals.total_stars,
            "perfect_game": lambda: totals.perfect_games,
            "fast_completion": lambda: totals.fast_completions,
            "consecutive_days": lambda: consecutive_days(totals.play_dates, now.date()),
            "weekend_play": lambda: 1 if now.weekday() >= 5 else 0,
            "early_morning_play": lambda: 1 if now.hour < EARLY_MORNING_HOUR else 0,
            "evening_play": lambda: 1 if now.hour >= EVENING_HOUR else 0,
        }
        return values[condition]()
