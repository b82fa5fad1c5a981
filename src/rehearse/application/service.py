"""
Review Service — Application layer orchestrator.

Wires the lifecycle manager, the due-set queries and the query cache around a
single ReviewStore. Construct one per store at startup and pass it to callers;
tests build independent instances with their own stores and clocks.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from rehearse.application.cache import QueryCache
from rehearse.application.id_service import generate_problem_id
from rehearse.application.lifecycle import ReviewPlanLifecycle
from rehearse.application.queries import DueSetQueryEngine
from rehearse.application.statistics import compute_statistics
from rehearse.domain.constants import CACHE_TTL_SECONDS
from rehearse.domain.errors import UnknownEntity
from rehearse.domain.models import (
    ConfidenceLevel,
    Problem,
    ReviewPlan,
    ReviewStatistics,
)
from rehearse.domain.ports import ReviewStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReviewService:
    """
    Facade over the review scheduling engine.

    Every time-dependent method accepts an explicit reference instant; when it
    is omitted the injected clock is read instead, and a naive one is taken to
    be in the clock's timezone. Mutations clear the query
    cache before returning, so the next read always sees them.
    """

    def __init__(
        self,
        store: ReviewStore,
        cache_ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            store: The repository (port) holding problems and plans.
            cache_ttl_seconds: Lifetime of cached query results.
            clock: Source of "now"; defaults to the UTC wall clock.
        """
        self._store = store
        self._clock = clock or utc_now
        self._cache = QueryCache(ttl_seconds=cache_ttl_seconds)
        self._queries = DueSetQueryEngine(store)
        self._lifecycle = ReviewPlanLifecycle(store)
        self._lifecycle.add_listener(self._cache.invalidate)

    @property
    def store(self) -> ReviewStore:
        return self._store

    @property
    def cache(self) -> QueryCache:
        return self._cache

    # --- mutations ---

    def add_problem(
        self,
        title: str,
        source: str | None = None,
        tags: list[str] | None = None,
        now: datetime | None = None,
    ) -> tuple[Problem, ReviewPlan]:
        """Register a new problem and schedule its first review."""
        problem = Problem(id=generate_problem_id(), title=title, source=source, tags=tags or [])
        plan = self.create_initial(problem, now=now)
        return problem, plan

    def create_initial(self, problem: Problem, now: datetime | None = None) -> ReviewPlan:
        return self._lifecycle.create_initial(problem, self._instant(now))

    def complete(
        self,
        plan: ReviewPlan,
        score: int,
        confidence: int = ConfidenceLevel.MEDIUM,
        time_spent: float = 0.0,
        now: datetime | None = None,
    ) -> ReviewPlan:
        return self._lifecycle.complete(plan, score, confidence, time_spent, self._instant(now))

    def skip(self, plan: ReviewPlan, as_of: datetime | None = None) -> ReviewPlan:
        return self._lifecycle.skip(plan, self._instant(as_of))

    def postpone(self, plan: ReviewPlan, days: int, now: datetime | None = None) -> ReviewPlan:
        return self._lifecycle.postpone(plan, days, self._instant(now))

    # --- cached reads ---

    def due(self, as_of: datetime | None = None) -> list[ReviewPlan]:
        as_of = self._instant(as_of)
        return self._cache.get_or_compute("due", as_of, lambda: self._queries.due(as_of))

    def today(self, as_of: datetime | None = None) -> list[ReviewPlan]:
        as_of = self._instant(as_of)
        return self._cache.get_or_compute("today", as_of, lambda: self._queries.today(as_of))

    def overdue(self, as_of: datetime | None = None) -> list[ReviewPlan]:
        as_of = self._instant(as_of)
        return self._cache.get_or_compute("overdue", as_of, lambda: self._queries.overdue(as_of))

    def this_week(self, as_of: datetime | None = None) -> list[ReviewPlan]:
        as_of = self._instant(as_of)
        return self._cache.get_or_compute(
            "this_week", as_of, lambda: self._queries.this_week(as_of)
        )

    def invalidate_cache(self) -> None:
        self._cache.invalidate()

    def _instant(self, value: datetime | None) -> datetime:
        """Resolve an optional reference instant; naive values take the clock's zone."""
        if value is None:
            return self._clock()
        if value.tzinfo is None:
            return value.replace(tzinfo=self._clock().tzinfo or timezone.utc)
        return value

    # --- lookups ---

    def get_problem(self, problem_id: str) -> Problem:
        problem = self._store.get_problem(problem_id)
        if problem is None:
            raise UnknownEntity("problem", problem_id)
        return problem

    def get_plan(self, plan_id: str) -> ReviewPlan:
        plan = self._store.get_plan(plan_id)
        if plan is None:
            raise UnknownEntity("review plan", plan_id)
        return plan

    def active_plan(self, problem_id: str) -> ReviewPlan | None:
        return self._lifecycle.active_plan(problem_id)

    def predict_next_review_date(self, problem_id: str) -> datetime | None:
        """When the problem is next due, or None if it has no active plan."""
        plan = self._lifecycle.active_plan(problem_id)
        return plan.scheduled_at if plan else None

    def statistics(
        self, problem_id: str, as_of: datetime | None = None
    ) -> ReviewStatistics | None:
        problem = self.get_problem(problem_id)
        return compute_statistics(self._store, problem, self._instant(as_of))
