from datetime import datetime, timezone

import pytest

from rehearse.application.service import ReviewService
from rehearse.domain.models import Problem, ReviewPlan, ReviewStatus
from rehearse.infrastructure.adapters.memory_store import InMemoryReviewStore
from rehearse.infrastructure.adapters.sqlite_store import SqliteReviewStore

# 2024-01-01 is a Monday.
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def at(day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Instant in January 2024, UTC."""
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


class FixedClock:
    """Settable clock for services under test."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def store():
    return InMemoryReviewStore()


@pytest.fixture
def sqlite_store(tmp_path):
    s = SqliteReviewStore(tmp_path / "reviews.db")
    yield s
    s.close()


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path):
    """Runs a test once per store adapter."""
    if request.param == "memory":
        yield InMemoryReviewStore()
    else:
        s = SqliteReviewStore(tmp_path / "reviews.db")
        yield s
        s.close()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def service(store, clock):
    return ReviewService(store, clock=clock)


def seed_plan(
    store,
    plan_id: str,
    scheduled_at: datetime,
    problem_id: str | None = None,
    status: ReviewStatus = ReviewStatus.PENDING,
    level: int = 1,
) -> ReviewPlan:
    """Insert a problem (if new) and a plan directly into a store."""
    problem_id = problem_id or f"prob_{plan_id}"
    if store.get_problem(problem_id) is None:
        store.insert(Problem(id=problem_id, title=f"Problem {problem_id}"))
    plan = ReviewPlan(
        id=plan_id,
        problem_id=problem_id,
        scheduled_at=scheduled_at,
        status=status,
        level=level,
    )
    store.insert(plan)
    return plan
