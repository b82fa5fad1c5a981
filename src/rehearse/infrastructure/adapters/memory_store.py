"""
In-Memory Review Store — Infrastructure adapter backed by dictionaries.

Implements ReviewStore for tests, demos and the `--backend memory` mode.
Transactions snapshot both tables and restore them if the block raises.
"""

import copy
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from rehearse.domain.errors import StorageWriteFailed, UnknownEntity
from rehearse.domain.models import Problem, ReviewPlan
from rehearse.domain.ports import ASCENDING, PlanFilter, PlanSort, ReviewStore

logger = logging.getLogger(__name__)


class InMemoryReviewStore(ReviewStore):
    """
    Process-local store. Entities are deep-copied on the way in and out,
    so callers never share state with the store.
    """

    def __init__(self):
        self._problems: dict[str, Problem] = {}
        self._plans: dict[str, ReviewPlan] = {}
        self._lock = threading.RLock()
        self._depth = 0

    def insert(self, entity: Problem | ReviewPlan) -> None:
        with self._lock:
            table = self._table_for(entity)
            if entity.id in table:
                raise StorageWriteFailed(f"Duplicate id: {entity.id}")
            table[entity.id] = copy.deepcopy(entity)

    def update(self, entity: Problem | ReviewPlan) -> None:
        with self._lock:
            table = self._table_for(entity)
            if entity.id not in table:
                kind = "problem" if isinstance(entity, Problem) else "review plan"
                raise UnknownEntity(kind, entity.id)
            table[entity.id] = copy.deepcopy(entity)

    def get_problem(self, problem_id: str) -> Problem | None:
        with self._lock:
            problem = self._problems.get(problem_id)
            return copy.deepcopy(problem) if problem else None

    def get_plan(self, plan_id: str) -> ReviewPlan | None:
        with self._lock:
            plan = self._plans.get(plan_id)
            return copy.deepcopy(plan) if plan else None

    def query(self, predicate: PlanFilter, sort: PlanSort = ASCENDING) -> list[ReviewPlan]:
        with self._lock:
            matching = [p for p in self._plans.values() if predicate.matches(p)]
            return [copy.deepcopy(p) for p in sort.apply(matching)]

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                snapshot = (copy.deepcopy(self._problems), copy.deepcopy(self._plans))
            self._depth += 1
            try:
                yield
            except BaseException:
                if outermost:
                    self._problems, self._plans = snapshot
                    logger.debug("Rolled back in-memory transaction")
                raise
            finally:
                self._depth -= 1

    def _table_for(self, entity: Problem | ReviewPlan) -> dict:
        if isinstance(entity, Problem):
            return self._problems
        if isinstance(entity, ReviewPlan):
            return self._plans
        raise TypeError(f"Unsupported entity type: {type(entity).__name__}")
