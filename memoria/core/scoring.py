"""Scoring rules for the memory game.

All functions here are pure: they turn the raw counters collected during a
session into a star rating, an efficiency percentage and bonus messages.

Thresholds are expressed relative to the theoretical best game:

  * ``min_flips`` – ``total_pairs * 2`` (every pair found on the first try).
  * ``max_time``  – ``total_pairs * 12000`` ms (twelve seconds per pair).

The multipliers below are tuned for the target age group and must not be
changed without product sign-off.
"""

from __future__ import annotations

import math
import random
from typing import List, Optional, Sequence, TypeVar

from memoria.core.models import BonusQualification, GameStats

T = TypeVar("T")

MAX_TIME_PER_PAIR_MS = 12000
MIN_FLIPS_MULTIPLIER = 2
PERFECT_FLIPS_MULTIPLIER = 1.2
GOOD_FLIPS_MULTIPLIER = 1.5
MEMORY_BONUS_MULTIPLIER = 1.4
FAST_TIME_RATIO = 0.6

EXCEPTIONAL_MEMORY_MESSAGE = "🧠 Exceptional memory!"
EXCELLENT_PRECISION_MESSAGE = "⭐ Excellent precision!"


def min_flips_for(total_pairs: int) -> int:
    return total_pairs * MIN_FLIPS_MULTIPLIER


def max_time_for(total_pairs: int) -> int:
    return total_pairs * MAX_TIME_PER_PAIR_MS


def calculate_stars(errors: int, flip_count: int, completion_time_ms: int, total_pairs: int) -> int:
    """Return a 1–3 star rating for a finished game."""
    max_time = max_time_for(total_pairs)
    min_flips = min_flips_for(total_pairs)

    time_bonus = 1 if completion_time_ms < max_time * FAST_TIME_RATIO else 0
    memory_bonus = 1 if flip_count <= min_flips * MEMORY_BONUS_MULTIPLIER else 0

    if errors == 0 and flip_count <= min_flips * PERFECT_FLIPS_MULTIPLIER:
        return 3
    if errors <= 2 and flip_count <= min_flips * GOOD_FLIPS_MULTIPLIER:
        return 2 + time_bonus
    if errors <= 4:
        return 1 + memory_bonus
    return 1


def calculate_efficiency(total_pairs: int, flip_count: int) -> int:
    """Best possible flips as a percentage of actual flips, rounded half up.

    Returns 0 when no card has been flipped yet.
    """
    if flip_count <= 0:
        return 0
    return int(math.floor(min_flips_for(total_pairs) / flip_count * 100 + 0.5))


def check_bonus_qualification(stats: GameStats, total_pairs: int) -> BonusQualification:
    min_flips = min_flips_for(total_pairs)
    if stats.perfect_run and stats.flip_count <= min_flips * MEMORY_BONUS_MULTIPLIER:
        return BonusQualification(qualified=True, message=EXCEPTIONAL_MEMORY_MESSAGE)
    if stats.errors <= 1 and stats.stars >= 2:
        return BonusQualification(qualified=True, message=EXCELLENT_PRECISION_MESSAGE)
    return BonusQualification(qualified=False)


def performance_message(stars: int, perfect_run: bool, flip_count: int, total_pairs: int) -> str:
    """Short encouragement line shown on the completion screen."""
    min_flips = min_flips_for(total_pairs)
    if perfect_run and stars == 3 and flip_count <= min_flips * PERFECT_FLIPS_MULTIPLIER:
        return "Perfect memory! Amazing 🧠🏆"
    if perfect_run and stars == 3:
        return "Excellent memory! No mistakes 🌟"
    if stars == 3:
        return "Very well done! 👏"
    if stars == 2:
        return "Good job! Keep practising 💪"
    return "Completed! Your memory will keep improving 📈"


def format_time(milliseconds: int) -> str:
    """Format a duration as ``m:ss`` (or ``Ns`` under a minute)."""
    seconds = max(0, int(milliseconds)) // 1000
    minutes = seconds // 60
    remaining = seconds % 60
    if minutes > 0:
        return f"{minutes}:{remaining:02d}"
    return f"{remaining}s"


def shuffle_array(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a Fisher–Yates shuffled copy of ``items``."""
    rand = rng or random
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rand.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled
