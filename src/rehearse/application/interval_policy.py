"""
Interval policy: maps a grade to the next level and due date.

This is a pure computation module with no I/O.
"""

from datetime import datetime, timedelta

from rehearse.domain.constants import (
    CONFIDENCE_FACTORS,
    INTERVAL_DAYS,
    MAX_LEVEL,
    MIN_LEVEL,
)


def interval_days(level: int) -> int:
    """Look up the base interval for a level (1..8)."""
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise ValueError(f"level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {level}")
    return INTERVAL_DAYS[level - 1]


def next_level(current_level: int, score: int) -> int:
    """
    Move through the interval table according to the grade.

    4-5 advances one level, 3 repeats the level, 2 steps back one,
    0-1 resets to the first level.
    """
    if score >= 4:
        return min(current_level + 1, MAX_LEVEL)
    if score == 3:
        return current_level
    if score == 2:
        return max(current_level - 1, MIN_LEVEL)
    return MIN_LEVEL


def scaled_interval_days(level: int, confidence: int) -> float:
    """
    Scale the level's interval by confidence, staying between the neighbouring levels.

    The bounds saturate at the ends of the table: level 1 never drops below
    one day and level 8 never exceeds its own interval.
    """
    base = interval_days(level)
    factor = CONFIDENCE_FACTORS.get(confidence, 1.0)
    floor = interval_days(max(level - 1, MIN_LEVEL))
    ceiling = interval_days(min(level + 1, MAX_LEVEL))
    return min(max(base * factor, floor), ceiling)


def next_due_date(reference: datetime, level: int, confidence: int) -> datetime:
    """Return when a plan at ``level`` graded with ``confidence`` is next due."""
    return reference + timedelta(days=scaled_interval_days(level, confidence))
