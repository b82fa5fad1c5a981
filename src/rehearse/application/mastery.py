"""
Mastery aggregator: folds a recorded grade into a problem's running stats.

Stateless; both functions mutate the Problem they are given.
"""

from datetime import datetime

from rehearse.domain.constants import MAX_MASTERY, MAX_SCORE, MIN_MASTERY, STREAK_SCORE
from rehearse.domain.models import MasteryLevel, Problem

# Grade -> change in mastery. A perfect score jumps straight to the top.
_MASTERY_STEP = {4: 1, 3: 0, 2: -1, 1: -2, 0: -2}


def apply_grade(problem: Problem, score: int) -> None:
    """Adjust mastery (0-5) from a single grade."""
    if score >= MAX_SCORE:
        problem.mastery = int(MasteryLevel.MASTERED)
        return
    step = _MASTERY_STEP.get(score, 0)
    problem.mastery = max(MIN_MASTERY, min(MAX_MASTERY, problem.mastery + step))


def apply_average(problem: Problem, score: int, now: datetime) -> None:
    """
    Update the running average, review count, streak and practice time.

    Runs on every completion, independent of apply_grade.
    """
    total = problem.average_score * problem.total_reviews
    problem.total_reviews += 1
    problem.average_score = (total + score) / problem.total_reviews

    if score >= STREAK_SCORE:
        problem.streak_count += 1
    else:
        problem.streak_count = 0

    problem.last_practiced_at = now
    problem.updated_at = now
