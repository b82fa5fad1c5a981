"""
Typed failures raised by the scheduler.

None of these is fatal to the process; callers decide whether to retry,
refresh their view, or re-prompt the user.
"""


class SchedulerError(Exception):
    """Base class for every scheduler failure."""


class InvalidScore(SchedulerError):
    """A grade or confidence value fell outside its allowed range."""

    def __init__(self, value: int, low: int, high: int, field: str = "score"):
        self.value = value
        self.field = field
        super().__init__(f"{field} must be between {low} and {high}, got {value}")


class PlanNotActive(SchedulerError):
    """The plan is not in a status that allows the requested transition."""

    def __init__(self, plan_id: str, status: str):
        self.plan_id = plan_id
        self.status = status
        super().__init__(f"Review plan {plan_id} is {status}, not active")


class DuplicateActivePlan(SchedulerError):
    """The problem already owns an active review plan."""

    def __init__(self, problem_id: str, plan_id: str):
        self.problem_id = problem_id
        self.plan_id = plan_id
        super().__init__(f"Problem {problem_id} already has active plan {plan_id}")


class NotSkippable(SchedulerError):
    """Only today's pending or skipped plans can be moved to the end of the queue."""

    def __init__(self, plan_id: str, reason: str):
        self.plan_id = plan_id
        super().__init__(f"Review plan {plan_id} cannot be skipped: {reason}")


class InvalidPostpone(SchedulerError):
    """Postponement must move a plan forward by at least one day."""

    def __init__(self, days: int):
        self.days = days
        super().__init__(f"Postpone days must be positive, got {days}")


class UnknownEntity(SchedulerError):
    """A problem or plan id does not exist in the store."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"Unknown {kind}: {entity_id}")


class StorageError(SchedulerError):
    """Base class for record-store failures."""


class StorageWriteFailed(StorageError):
    """A transaction failed to commit; nothing from it was persisted."""


class StorageReadFailed(StorageError):
    """A query could not be executed against the store."""
