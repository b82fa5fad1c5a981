"""
Per-problem review statistics derived from the plan history.

Pure read-side computation over the store; no writes.
"""

from datetime import datetime

from rehearse.domain.models import Problem, ReviewStatistics, ReviewStatus
from rehearse.domain.ports import ASCENDING, PlanFilter, ReviewStore
from rehearse.domain.windows import month_bounds, week_bounds


def compute_statistics(
    store: ReviewStore, problem: Problem, as_of: datetime
) -> ReviewStatistics | None:
    """
    Summarize the review history of one problem.

    Returns:
        ReviewStatistics, or None if the problem has never been completed.
    """
    plans = store.query(PlanFilter(problem_id=problem.id), ASCENDING)
    completed = [
        p for p in plans if p.status == ReviewStatus.COMPLETED and p.completed_at is not None
    ]
    if not completed:
        return None

    completed.sort(key=lambda p: p.completed_at)
    scores = [p.score or 0 for p in completed]

    gaps = [
        (later.completed_at - earlier.completed_at).total_seconds() / 86400.0
        for earlier, later in zip(completed, completed[1:])
    ]
    average_interval = sum(gaps) / len(gaps) if gaps else 0.0

    week_start, week_end = week_bounds(as_of)
    month_start, month_end = month_bounds(as_of)

    return ReviewStatistics(
        total_reviews=len(completed),
        average_score=sum(scores) / len(scores),
        completion_rate=len(completed) / len(plans),
        average_interval_days=average_interval,
        current_streak=problem.streak_count,
        reviews_this_week=sum(1 for p in completed if week_start <= p.completed_at <= week_end),
        reviews_this_month=sum(
            1 for p in completed if month_start <= p.completed_at <= month_end
        ),
    )
