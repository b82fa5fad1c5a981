"""
Review plan lifecycle manager.

Owns every status transition of a review plan:
1. create_initial: first plan for a newly added problem
2. complete: grade the active plan and spawn its successor
3. skip: move one of today's plans to the end of today's queue
4. postpone: push a plan out by whole days

Each mutation runs under a per-problem lock inside a single store
transaction, and fires the change listeners before returning.
"""

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import fields
from datetime import datetime, timedelta

from rehearse.application.id_service import generate_plan_id
from rehearse.application.interval_policy import next_due_date, next_level
from rehearse.application.mastery import apply_average, apply_grade
from rehearse.application.reflow import reflow_successor, was_overdue
from rehearse.domain.constants import (
    INITIAL_DELAY_DAYS,
    MAX_SCORE,
    MIN_LEVEL,
    MIN_SCORE,
    REORDER_STEP_MINUTES,
)
from rehearse.domain.errors import (
    DuplicateActivePlan,
    InvalidPostpone,
    InvalidScore,
    NotSkippable,
    PlanNotActive,
    UnknownEntity,
)
from rehearse.domain.models import (
    ACTIVE_STATUSES,
    ConfidenceLevel,
    Problem,
    ReviewPlan,
    ReviewStatus,
)
from rehearse.domain.ports import LATEST_FIRST, PlanFilter, ReviewStore
from rehearse.domain.windows import day_bounds, start_of_day

logger = logging.getLogger(__name__)

SKIPPABLE_STATUSES = frozenset({ReviewStatus.PENDING, ReviewStatus.SKIPPED})


class ReviewPlanLifecycle:
    """
    State machine for review plans.

    pending -> completed is terminal. pending <-> skipped and
    pending <-> postponed are rescheduling states that can still complete.
    """

    def __init__(self, store: ReviewStore):
        self._store = store
        self._listeners: list[Callable[[], None]] = []
        # problem_id -> [lock, number of callers holding or waiting on it]
        self._locks: dict[str, list] = {}
        self._locks_guard = threading.Lock()

    def add_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback fired after every mutation, successful or not."""
        self._listeners.append(listener)

    # --- public operations ---

    def create_initial(self, problem: Problem, now: datetime) -> ReviewPlan:
        """
        Create the level-1 plan for a problem, due one day from now.

        Persists the problem as well if the store has not seen it yet.

        Raises:
            DuplicateActivePlan: If the problem already has an active plan.
        """
        try:
            with self._problem_lock(problem.id):
                plan = ReviewPlan(
                    id=generate_plan_id(),
                    problem_id=problem.id,
                    scheduled_at=now + timedelta(days=INITIAL_DELAY_DAYS),
                    level=MIN_LEVEL,
                )
                with self._store.transaction():
                    existing = self.active_plan(problem.id)
                    if existing is not None:
                        raise DuplicateActivePlan(problem.id, existing.id)
                    if self._store.get_problem(problem.id) is None:
                        problem.created_at = problem.created_at or now
                        problem.updated_at = now
                        self._store.insert(problem)
                    self._store.insert(plan)

                logger.info(f"Created initial plan {plan.id} for {problem.id} at {plan.scheduled_at}")
                return plan
        finally:
            self._notify()

    def complete(
        self,
        plan: ReviewPlan,
        score: int,
        confidence: int,
        time_spent: float,
        now: datetime,
    ) -> ReviewPlan:
        """
        Grade an active plan and create its successor.

        The plan update, the successor insert and the problem's statistics are
        written in one transaction. ``plan`` is refreshed in place on success.

        Returns:
            The new pending plan.

        Raises:
            InvalidScore: If score is outside 0-5 or confidence outside 1-5.
            PlanNotActive: If the plan was already completed.
            UnknownEntity: If the plan or its problem no longer exists.
        """
        _check_range(score, MIN_SCORE, MAX_SCORE, "score")
        _check_range(confidence, ConfidenceLevel.VERY_LOW, ConfidenceLevel.VERY_HIGH, "confidence")

        try:
            with self._problem_lock(plan.problem_id):
                with self._store.transaction():
                    current = self._fetch_plan(plan.id)
                    if not current.is_active:
                        raise PlanNotActive(current.id, current.status.value)
                    problem = self._store.get_problem(current.problem_id)
                    if problem is None:
                        raise UnknownEntity("problem", current.problem_id)

                    original_due = current.scheduled_at
                    current.status = ReviewStatus.COMPLETED
                    current.score = score
                    current.confidence = int(confidence)
                    current.time_spent = time_spent
                    current.completed_at = now
                    self._store.update(current)

                    level = next_level(current.level, score)
                    successor = ReviewPlan(
                        id=generate_plan_id(),
                        problem_id=current.problem_id,
                        scheduled_at=next_due_date(now, level, int(confidence)),
                        level=level,
                    )
                    if was_overdue(original_due, now):
                        reflow_successor(self._store, successor, now)
                    self._store.insert(successor)

                    apply_grade(problem, score)
                    apply_average(problem, score, now)
                    self._store.update(problem)

                _sync(plan, current)
                logger.info(
                    f"Completed {current.id} (score={score}, confidence={int(confidence)}); "
                    f"next {successor.id} at level {level} on {successor.scheduled_at}"
                )
                return successor
        finally:
            self._notify()

    def skip(self, plan: ReviewPlan, as_of: datetime) -> ReviewPlan:
        """
        Move one of today's plans behind the last plan queued for today.

        Status is left as it is.

        Raises:
            NotSkippable: If the plan is not pending/skipped or not due today.
        """
        try:
            with self._problem_lock(plan.problem_id):
                with self._store.transaction():
                    current = self._fetch_plan(plan.id)
                    if current.status not in SKIPPABLE_STATUSES:
                        raise NotSkippable(current.id, f"status is {current.status.value}")

                    day_start, day_end = day_bounds(as_of)
                    if not day_start <= current.scheduled_at < day_end:
                        raise NotSkippable(current.id, "not scheduled for today")

                    tail = self._store.query(
                        PlanFilter(
                            statuses=SKIPPABLE_STATUSES,
                            scheduled_from=day_start,
                            scheduled_before=day_end,
                        ),
                        LATEST_FIRST,
                    )
                    latest = tail[0].scheduled_at if tail else current.scheduled_at
                    moved_to = max(latest, current.scheduled_at) + timedelta(
                        minutes=REORDER_STEP_MINUTES
                    )
                    current.scheduled_at = moved_to
                    self._store.update(current)

                _sync(plan, current)
                logger.info(f"Skipped {current.id} to {current.scheduled_at}")
                return plan
        finally:
            self._notify()

    def postpone(self, plan: ReviewPlan, days: int, now: datetime) -> ReviewPlan:
        """
        Push an active plan out by ``days`` and mark it postponed.

        Counts from the plan's own due date, or from the start of today if the
        plan is overdue, so a plan never moves earlier.

        Raises:
            InvalidPostpone: If days is not positive.
            PlanNotActive: If the plan was already completed.
        """
        if days <= 0:
            raise InvalidPostpone(days)

        try:
            with self._problem_lock(plan.problem_id):
                with self._store.transaction():
                    current = self._fetch_plan(plan.id)
                    if not current.is_active:
                        raise PlanNotActive(current.id, current.status.value)

                    anchor = max(current.scheduled_at, start_of_day(now))
                    current.scheduled_at = anchor + timedelta(days=days)
                    current.status = ReviewStatus.POSTPONED
                    self._store.update(current)

                _sync(plan, current)
                logger.info(f"Postponed {current.id} by {days}d to {current.scheduled_at}")
                return plan
        finally:
            self._notify()

    def active_plan(self, problem_id: str) -> ReviewPlan | None:
        """Return the problem's pending/skipped/postponed plan, if any."""
        plans = self._store.query(PlanFilter(problem_id=problem_id, statuses=ACTIVE_STATUSES))
        if len(plans) > 1:
            logger.warning(f"Problem {problem_id} has {len(plans)} active plans")
        return plans[0] if plans else None

    # --- helpers ---

    def _fetch_plan(self, plan_id: str) -> ReviewPlan:
        current = self._store.get_plan(plan_id)
        if current is None:
            raise UnknownEntity("review plan", plan_id)
        return current

    @contextmanager
    def _problem_lock(self, problem_id: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.setdefault(problem_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[problem_id]

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()


def _check_range(value: int, low: int, high: int, field: str) -> None:
    if not low <= value <= high:
        raise InvalidScore(value, int(low), int(high), field=field)


def _sync(target: ReviewPlan, source: ReviewPlan) -> None:
    """Copy the stored state of a plan back onto the caller's instance."""
    for f in fields(ReviewPlan):
        setattr(target, f.name, getattr(source, f.name))
