# Domain Package
from .errors import (
    DuplicateActivePlan,
    InvalidPostpone,
    InvalidScore,
    NotSkippable,
    PlanNotActive,
    SchedulerError,
    StorageError,
    StorageReadFailed,
    StorageWriteFailed,
    UnknownEntity,
)
from .models import (
    ACTIVE_STATUSES,
    ConfidenceLevel,
    MasteryLevel,
    Problem,
    ReviewPlan,
    ReviewStatistics,
    ReviewStatus,
)
from .ports import PlanFilter, PlanSort, ReviewStore

__all__ = [
    "ACTIVE_STATUSES",
    "ConfidenceLevel",
    "MasteryLevel",
    "Problem",
    "ReviewPlan",
    "ReviewStatistics",
    "ReviewStatus",
    "PlanFilter",
    "PlanSort",
    "ReviewStore",
    "SchedulerError",
    "InvalidScore",
    "PlanNotActive",
    "DuplicateActivePlan",
    "NotSkippable",
    "InvalidPostpone",
    "UnknownEntity",
    "StorageError",
    "StorageWriteFailed",
    "StorageReadFailed",
]
