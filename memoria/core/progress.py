from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from memoria.core.models import AchievementProgress

logger = logging.getLogger(__name__)


@dataclass
class DeckProgress:
    completed: int = 0
    best_stars: int = 0
    best_time_ms: int = 0


@dataclass
class PlayerTotals:
    games_completed: int = 0
    total_stars: int = 0
    perfect_games: int = 0
    fast_completions: int = 0
    play_dates: List[str] = field(default_factory=list)


class ProgressStore:
    """Stores deck progress, player totals and achievement unlocks.
    File: ~/.memoria/progress.json. Cleared only when the player resets progress."""

    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = file_path or Path.home() / ".memoria" / "progress.json"
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._decks, self._totals, self._achievements = self._load()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def get_deck_progress(self, deck_key: str) -> DeckProgress:
        return self._decks.get(deck_key, DeckProgress())

    def get_totals(self) -> PlayerTotals:
        return self._totals

    def get_achievement(self, key: str) -> AchievementProgress:
        return self._achievements.get(key, AchievementProgress())

    def update_deck_progress(self, deck_key: str, stars: int, completion_time_ms: int) -> None:
        current = self._decks.get(deck_key, DeckProgress())
        current.completed += 1
        current.best_stars = max(current.best_stars, stars)
        if current.best_time_ms == 0 or completion_time_ms < current.best_time_ms:
            current.best_time_ms = completion_time_ms
        self._decks[deck_key] = current

    def record_game(self, stars: int, perfect: bool, fast: bool, play_date: str) -> PlayerTotals:
        """Add one finished game to the player totals (not saved until :meth:`save`)."""
        t = self._totals
        t.games_completed += 1
        t.total_stars += stars
        if perfect:
            t.perfect_games += 1
        if fast:
            t.fast_completions += 1
        if play_date not in t.play_dates:
            t.play_dates.append(play_date)
            t.play_dates.sort()
        return t

    def set_achievement(self, key: str, progress: AchievementProgress) -> None:
        self._achievements[key] = progress

    def reset(self) -> None:
        """Clear all progress. Only called when the player presses reset progress."""
        self._decks = {}
        self._totals = PlayerTotals()
        self._achievements = {}
        self.save()

    def reload(self) -> None:
        """Drop unsaved changes and re-read the file."""
        self._decks, self._totals, self._achievements = self._load()

    def save(self) -> None:
        """Persist current state to disk. Raises OSError if the file cannot be written."""
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "decks": {key: asdict(value) for key, value in self._decks.items()},
            "totals": asdict(self._totals),
            "achievements": {key: asdict(value) for key, value in self._achievements.items()},
        }
        self._file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def _load(self):
        decks: Dict[str, DeckProgress] = {}
        totals = PlayerTotals()
        achievements: Dict[str, AchievementProgress] = {}
        if not self._file_path.exists():
            return decks, totals, achievements
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load progress from %s: %s", self._file_path, e)
            return decks, totals, achievements
        if not isinstance(payload, dict):
            logger.warning("Could not load progress from %s: not a JSON object", self._file_path)
            return decks, totals, achievements

        try:
            decks = self._parse_decks(payload.get("decks", {}))
            totals = self._parse_totals(payload.get("totals", {}))
            achievements = self._parse_achievements(payload.get("achievements", {}))
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Could not load progress from %s: %s", self._file_path, e)
            return {}, PlayerTotals(), {}
        return decks, totals, achievements

    @staticmethod
    def _parse_decks(raw) -> Dict[str, DeckProgress]:
        if not isinstance(raw, dict):
            raise TypeError("'decks' must be an object")
        decks: Dict[str, DeckProgress] = {}
        for key, value in raw.items():
            if not isinstance(value, dict):
                raise TypeError(f"deck {key!r} must be an object")
            decks[key] = DeckProgress(
                completed=int(value.get("completed", 0)),
                best_stars=int(value.get("best_stars", 0)),
                best_time_ms=int(value.get("best_time_ms", 0)),
            )
        return decks

    @staticmethod
    def _parse_totals(raw) -> PlayerTotals:
        if not isinstance(raw, dict):
            raise TypeError("'totals' must be an object")
        play_dates = raw.get("play_dates", [])
        if not isinstance(play_dates, list):
            raise TypeError("'play_dates' must be a list")
        return PlayerTotals(
            games_completed=int(raw.get("games_completed", 0)),
            total_stars=int(raw.get("total_stars", 0)),
            perfect_games=int(raw.get("perfect_games", 0)),
            fast_completions=int(raw.get("fast_completions", 0)),
            play_dates=sorted({str(d) for d in play_dates}),
        )

    @staticmethod
    def _parse_achievements(raw) -> Dict[str, AchievementProgress]:
        if not isinstance(raw, dict):
            raise TypeError("'achievements' must be an object")
        achievements: Dict[str, AchievementProgress] = {}
        for key, value in raw.items():
            if not isinstance(value, dict):
                raise TypeError(f"achievement {key!r} must be an object")
            unlocked_at = value.get("unlocked_at")
            achievements[key] = AchievementProgress(
                progress=int(value.get("progress", 0)),
                unlocked=bool(value.get("unlocked", False)),
                unlocked_at=str(unlocked_at) if unlocked_at is not None else None,
            )
        return achievements
