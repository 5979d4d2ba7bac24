"""
Progression engine.
Pure XP/level/rank calculations. No database access, no side effects.

Two growth curves are used and intentionally kept separate:
- Overall level: required_xp(level) = (level * 100) ** 1.5
- Attribute level: attribute_level(xp) = floor(sqrt(xp / 50)) + 1,
  required_attribute_xp(level) = (50 * level) ** 2
"""
import math
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from levelup.constants import (
    LEVEL_XP_BASE,
    LEVEL_XP_EXPONENT,
    ATTRIBUTE_XP_DIVISOR,
    ATTRIBUTE_XP_BASE,
    RANK_THRESHOLDS,
    DEFAULT_RANK,
    DIFFICULTY_XP,
    DEFAULT_DIFFICULTY_XP,
)

logger = logging.getLogger("levelup.progression")


@dataclass(frozen=True)
class LevelSnapshot:
    current_xp: int
    current_level: int
    rank: str
    next_level_xp: float
    progress: float


@dataclass(frozen=True)
class AttributeSnapshot:
    attribute: str
    xp: int
    level: int
    next_level_xp: int
    progress: float


def _clamp_fraction(value: float) -> float:
    return max(0.0, min(1.0, value))


# ===== OVERALL LEVEL CURVE =====

def required_xp(level: int) -> float:
    """
    XP threshold for reaching the level above `level`.

    Formula: (level * 100) ** 1.5

    required_xp(1) == 1000, so the first level-up takes 50-200 completions.
    """
    return (level * LEVEL_XP_BASE) ** LEVEL_XP_EXPONENT


def progress_fraction(current_xp: int, level: int) -> float:
    """Progress towards the next level as a fraction in [0, 1]"""
    threshold = required_xp(level)
    if threshold <= 0:
        return 0.0
    return _clamp_fraction(current_xp / threshold)


def level_for_xp(xp: int) -> int:
    """
    Level held with `xp` cumulative XP.

    The smallest level L >= 1 such that xp < required_xp(L). This is the
    formula applied after every XP mutation to keep profile.current_level
    in sync with profile.current_xp.

    Args:
        xp: Cumulative XP (negative values are treated as 0)

    Returns:
        Level (minimum 1)
    """
    xp = max(0, xp)
    level = 1
    while xp >= required_xp(level):
        level += 1
    return level


# ===== ATTRIBUTE LEVEL CURVE =====

def attribute_level(xp: int) -> int:
    """Attribute level: floor(sqrt(xp / 50)) + 1"""
    xp = max(0, xp)
    return math.isqrt(xp // ATTRIBUTE_XP_DIVISOR) + 1


def required_attribute_xp(level: int) -> int:
    """Attribute XP shown as the next-level target: (50 * level) ** 2"""
    return (ATTRIBUTE_XP_BASE * level) ** 2


def attribute_progress_fraction(xp: int) -> float:
    """Progress of an attribute towards its next-level target, in [0, 1]"""
    return _clamp_fraction(max(0, xp) / required_attribute_xp(attribute_level(xp)))


# ===== RANKS & REWARDS =====

def rank_for_level(level: int) -> str:
    """
    Human-readable rank for a level.

    Thresholds are checked highest first:
    50+ Universal Hunter, 40+ Monarch, 30+ Shadow, 25+ S-Rank, 20+ A-Rank,
    15+ B-Rank, 10+ C-Rank, 5+ D-Rank, otherwise E-Rank.
    """
    for threshold, label in RANK_THRESHOLDS:
        if level >= threshold:
            return label
    return DEFAULT_RANK


rank = rank_for_level


def xp_for_difficulty(difficulty: str) -> int:
    """
    XP granted per completion for a difficulty.

    trivial=5, easy=10, medium=15, hard=20. Unknown difficulties fall back
    to 5; the API schemas reject them before they get here.
    """
    xp = DIFFICULTY_XP.get(difficulty)
    if xp is None:
        logger.warning(f"Unknown difficulty {difficulty!r}, using {DEFAULT_DIFFICULTY_XP} XP")
        return DEFAULT_DIFFICULTY_XP
    return xp


xp_value_for_difficulty = xp_for_difficulty


def apply_completion_delta(current_xp: int, delta: int) -> int:
    """Apply an XP delta, never going below 0"""
    return max(0, current_xp + delta)


# ===== STREAKS =====

def calculate_streak(completion_dates: Iterable[date], today: date) -> int:
    """
    Count consecutive days with at least one completion.

    The streak ends today, or yesterday if nothing has been completed yet
    today (the day is still open). Any older gap resets it to 0.

    Args:
        completion_dates: Dates with completions (duplicates allowed)
        today: Current effective date

    Returns:
        Streak length in days
    """
    days = set(completion_dates)
    if today in days:
        cursor = today
    elif today - timedelta(days=1) in days:
        cursor = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


# ===== SNAPSHOTS =====

def summarize_progress(current_xp: int, current_level: int) -> LevelSnapshot:
    return LevelSnapshot(
        current_xp=current_xp,
        current_level=current_level,
        rank=rank_for_level(current_level),
        next_level_xp=required_xp(current_level),
        progress=progress_fraction(current_xp, current_level),
    )


def summarize_attribute(attribute: str, xp: int) -> AttributeSnapshot:
    level = attribute_level(xp)
    return AttributeSnapshot(
        attribute=attribute,
        xp=xp,
        level=level,
        next_level_xp=required_attribute_xp(level),
        progress=attribute_progress_fraction(xp),
    )
