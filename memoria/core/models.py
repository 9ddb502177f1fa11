"""Domain models shared by the match engine, the session controller and the UI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Feedback(str, Enum):
    """Discrete feedback events sent to the UI layer."""

    SUCCESS = "success"
    ERROR = "error"
    WINNER = "winner"
    LOSER = "loser"


@dataclass
class Card:
    """A single card on the board. ``id`` is its position in the shuffled deck."""

    id: int
    symbol: str
    label: str = ""
    face_up: bool = False
    matched: bool = False


@dataclass
class GameStats:
    """Counters for one play session.

    ``stars`` and ``efficiency_percent`` are only filled in when the session
    is finalized; everything else is updated while the player is flipping.
    """

    total_attempts: int = 0
    errors: int = 0
    stars: int = 0
    completion_time_ms: int = 0
    perfect_run: bool = True
    matches_found: int = 0
    flip_count: int = 0
    efficiency_percent: int = 100


@dataclass(frozen=True)
class Achievement:
    id: int
    key: str
    title: str
    description: str = ""
    icon: str = ""
    category: str = "completion"
    rarity: str = "common"
    points: int = 0
    condition: str = ""
    max_progress: int = 1


@dataclass
class AchievementProgress:
    """Per-player progress towards a single achievement."""

    progress: int = 0
    unlocked: bool = False
    unlocked_at: Optional[str] = None


@dataclass(frozen=True)
class CompletionSummary:
    """What the session reports to the achievement gateway when a game ends."""

    stars: int
    is_perfect: bool
    completion_time_ms: int
    errors: int
    activity_type: str
    showed_improvement: bool
    used_help: bool
    took_time: bool
    deck_key: Optional[str] = None


@dataclass(frozen=True)
class BonusQualification:
    qualified: bool
    message: Optional[str] = None


@dataclass
class NotificationQueueEntry:
    achievement: Achievement
    visible: bool = False
