"""
Due-set query engine — read-side views over active review plans.

Every query takes the reference instant explicitly and returns plans in
ascending scheduled_at order. Storage read failures degrade to an empty
list: a momentarily empty due list is better than a crashed display.
"""

import logging
from datetime import datetime

from rehearse.domain.errors import StorageReadFailed
from rehearse.domain.models import ACTIVE_STATUSES, ReviewPlan
from rehearse.domain.ports import ASCENDING, PlanFilter, ReviewStore
from rehearse.domain.windows import day_bounds, start_of_day, week_bounds

logger = logging.getLogger(__name__)


class DueSetQueryEngine:
    """Time-windowed queries over pending, skipped and postponed plans."""

    def __init__(self, store: ReviewStore):
        self._store = store

    def due(self, as_of: datetime) -> list[ReviewPlan]:
        """Plans whose scheduled time has been reached."""
        return self._run("due", PlanFilter(statuses=ACTIVE_STATUSES, scheduled_until=as_of))

    def today(self, as_of: datetime) -> list[ReviewPlan]:
        """Plans scheduled within the calendar day of as_of."""
        day_start, day_end = day_bounds(as_of)
        return self._run(
            "today",
            PlanFilter(
                statuses=ACTIVE_STATUSES,
                scheduled_from=day_start,
                scheduled_before=day_end,
            ),
        )

    def overdue(self, as_of: datetime) -> list[ReviewPlan]:
        """Plans that were due before today started."""
        return self._run(
            "overdue",
            PlanFilter(statuses=ACTIVE_STATUSES, scheduled_before=start_of_day(as_of)),
        )

    def this_week(self, as_of: datetime) -> list[ReviewPlan]:
        """Plans scheduled between Monday 00:00 and Sunday night of as_of's week."""
        week_start, week_end = week_bounds(as_of)
        return self._run(
            "this_week",
            PlanFilter(
                statuses=ACTIVE_STATUSES,
                scheduled_from=week_start,
                scheduled_until=week_end,
            ),
        )

    def _run(self, name: str, predicate: PlanFilter) -> list[ReviewPlan]:
        try:
            return self._store.query(predicate, ASCENDING)
        except StorageReadFailed as e:
            logger.warning(f"Query '{name}' failed, returning no plans: {e}")
            return []
