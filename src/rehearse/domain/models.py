"""
Domain models for problems and review plans.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum


class ReviewStatus(str, Enum):
    """Lifecycle state of a review plan."""

    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    POSTPONED = "postponed"


# Plans in these states are still owed a review.
ACTIVE_STATUSES = frozenset(
    {ReviewStatus.PENDING, ReviewStatus.SKIPPED, ReviewStatus.POSTPONED}
)


class ConfidenceLevel(IntEnum):
    """Self-reported certainty recorded when a review is graded."""

    VERY_LOW = 1
    LOW = 2
    MEDIUM = 3
    HIGH = 4
    VERY_HIGH = 5


class MasteryLevel(IntEnum):
    """Retention strength of a problem (0-5)."""

    NOT_LEARNED = 0
    LEARNING = 1
    FAMILIAR = 2
    PROFICIENT = 3
    ADVANCED = 4
    MASTERED = 5


@dataclass
class Problem:
    """
    A practice problem tracked by the scheduler.

    The scheduler only reads and updates the performance fields; title,
    source and tags belong to the surrounding application.

    Attributes:
        mastery: Retention strength, 0-5.
        average_score: Running mean of every recorded grade.
        total_reviews: Number of completed grades.
        streak_count: Consecutive completions scored 4 or higher.
    """

    id: str
    title: str
    source: str | None = None
    tags: list[str] = field(default_factory=list)

    # Performance
    mastery: int = 0
    last_practiced_at: datetime | None = None
    average_score: float = 0.0
    total_reviews: int = 0
    streak_count: int = 0

    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class ReviewPlan:
    """
    A scheduled future review of one problem.

    score, confidence and completed_at are only set once the plan is completed.
    """

    id: str
    problem_id: str
    scheduled_at: datetime
    status: ReviewStatus = ReviewStatus.PENDING
    level: int = 1

    # Grade (completed plans only)
    score: int | None = None
    confidence: int | None = None
    completed_at: datetime | None = None
    time_spent: float = 0.0  # seconds

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


@dataclass(frozen=True)
class ReviewStatistics:
    """
    Aggregate review history for one problem.

    Attributes:
        completion_rate: Completed plans / all plans ever created.
        average_interval_days: Mean gap between consecutive completions.
        reviews_this_week: Completions inside the Monday-Sunday week of as_of.
        reviews_this_month: Completions inside the calendar month of as_of.
    """

    total_reviews: int
    average_score: float
    completion_rate: float
    average_interval_days: float
    current_streak: int
    reviews_this_week: int
    reviews_this_month: int
