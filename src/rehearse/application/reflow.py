"""
Weekly reflow for successors of overdue reviews.

When an overdue plan is finally completed, its successor may land inside the
current week. Rather than letting it jump ahead of (or collide with) work that
is already queued for this week, it is placed one step behind the latest
plan in the week.
"""

import logging
from datetime import datetime, timedelta

from rehearse.domain.constants import REORDER_STEP_MINUTES
from rehearse.domain.models import ACTIVE_STATUSES, ReviewPlan
from rehearse.domain.ports import LATEST_FIRST, PlanFilter, ReviewStore
from rehearse.domain.windows import start_of_day, week_bounds

logger = logging.getLogger(__name__)


def was_overdue(original_scheduled_at: datetime, now: datetime) -> bool:
    """A plan is overdue when it was due before the start of today."""
    return original_scheduled_at < start_of_day(now)


def reflow_successor(store: ReviewStore, successor: ReviewPlan, now: datetime) -> bool:
    """
    Push ``successor`` behind the tail of this week's queue.

    Mutates successor.scheduled_at in place; the caller persists it.
    Returns True if the plan was moved.
    """
    week_start, week_end = week_bounds(now)
    if not week_start <= successor.scheduled_at <= week_end:
        return False

    tail = store.query(
        PlanFilter(
            statuses=ACTIVE_STATUSES,
            scheduled_from=week_start,
            scheduled_until=week_end,
            exclude_id=successor.id,
        ),
        LATEST_FIRST,
    )
    if not tail:
        return False

    candidate = tail[0].scheduled_at + timedelta(minutes=REORDER_STEP_MINUTES)
    if candidate > week_end:
        logger.debug(f"Reflow of {successor.id} would pass the week end; leaving it in place")
        return False

    logger.debug(f"Reflowed {successor.id}: {successor.scheduled_at} -> {candidate}")
    successor.scheduled_at = candidate
    return True
