"""
Ports (interfaces) for review-plan storage.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import datetime

from .models import Problem, ReviewPlan, ReviewStatus


@dataclass(frozen=True)
class PlanFilter:
    """
    Declarative predicate over review plans.

    Unset fields are not checked. Bounds follow the usual half-open
    conventions: scheduled_from is inclusive, scheduled_before exclusive,
    scheduled_until inclusive.
    """

    problem_id: str | None = None
    statuses: frozenset[ReviewStatus] | None = None
    scheduled_from: datetime | None = None
    scheduled_before: datetime | None = None
    scheduled_until: datetime | None = None
    exclude_id: str | None = None

    def matches(self, plan: ReviewPlan) -> bool:
        if self.problem_id is not None and plan.problem_id != self.problem_id:
            return False
        if self.statuses is not None and plan.status not in self.statuses:
            return False
        if self.scheduled_from is not None and plan.scheduled_at < self.scheduled_from:
            return False
        if self.scheduled_before is not None and plan.scheduled_at >= self.scheduled_before:
            return False
        if self.scheduled_until is not None and plan.scheduled_at > self.scheduled_until:
            return False
        if self.exclude_id is not None and plan.id == self.exclude_id:
            return False
        return True


@dataclass(frozen=True)
class PlanSort:
    """Ordering for plan queries. Ties on scheduled_at fall back to id."""

    descending: bool = False
    limit: int | None = None

    def apply(self, plans: Iterable[ReviewPlan]) -> list[ReviewPlan]:
        ordered = sorted(plans, key=lambda p: (p.scheduled_at, p.id), reverse=self.descending)
        if self.limit is not None:
            ordered = ordered[: self.limit]
        return ordered


ASCENDING = PlanSort()
LATEST_FIRST = PlanSort(descending=True, limit=1)


class ReviewStore(ABC):
    """
    Port for durable storage of problems and review plans.

    Implementations:
        - InMemoryReviewStore: Process-local dictionaries, for tests and demos.
        - SqliteReviewStore: A single SQLite database file.

    Writes made inside ``transaction()`` are committed together when the block
    exits normally and rolled back together when it raises. Writes outside a
    transaction are committed immediately.
    """

    @abstractmethod
    def insert(self, entity: Problem | ReviewPlan) -> None:
        """
        Persist a new problem or review plan.

        Raises:
            StorageWriteFailed: If the entity cannot be written.
        """
        pass

    @abstractmethod
    def update(self, entity: Problem | ReviewPlan) -> None:
        """
        Overwrite an existing problem or review plan.

        Raises:
            UnknownEntity: If no entity with this id exists.
            StorageWriteFailed: If the entity cannot be written.
        """
        pass

    @abstractmethod
    def get_problem(self, problem_id: str) -> Problem | None:
        pass

    @abstractmethod
    def get_plan(self, plan_id: str) -> ReviewPlan | None:
        pass

    @abstractmethod
    def query(self, predicate: PlanFilter, sort: PlanSort = ASCENDING) -> list[ReviewPlan]:
        """
        Fetch the plans matching ``predicate`` in ``sort`` order.

        Returns:
            Detached copies; mutating them does not touch the store.

        Raises:
            StorageReadFailed: If the store cannot be queried.
        """
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Open an atomic unit of work. Nested calls join the outer unit."""
        pass

