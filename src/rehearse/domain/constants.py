"""Centralized constants for the Rehearse scheduler.

All magic numbers and policy tables live here so every layer
imports from a single source of truth.
"""

# ---------- Interval Policy ----------
# Days until the next review, indexed by level 1..8 (index 0 is level 1).
INTERVAL_DAYS = (1, 3, 7, 14, 30, 60, 120, 180)
MIN_LEVEL = 1
MAX_LEVEL = len(INTERVAL_DAYS)

# Confidence (1..5) -> multiplier applied to the base interval.
CONFIDENCE_FACTORS = {
    1: 0.5,
    2: 0.75,
    3: 1.0,
    4: 1.25,
    5: 1.5,
}

# ---------- Grades ----------
MIN_SCORE = 0
MAX_SCORE = 5
MIN_MASTERY = 0
MAX_MASTERY = 5
STREAK_SCORE = 4  # Scores at or above this extend the streak

# ---------- Lifecycle ----------
INITIAL_DELAY_DAYS = 1
REORDER_STEP_MINUTES = 1  # Gap used when pushing a plan behind the queue tail

# ---------- Query Cache ----------
CACHE_TTL_SECONDS = 30.0
