from datetime import datetime, timedelta, timezone

from conftest import at, seed_plan
from rehearse.domain.models import Problem
from rehearse.domain.ports import PlanFilter
from rehearse.infrastructure.adapters.sqlite_store import (
    SqliteReviewStore,
    from_db_time,
    to_db_time,
)


def test_creates_parent_directories(tmp_path):
    store = SqliteReviewStore(tmp_path / "nested" / "dir" / "reviews.db")
    try:
        assert (tmp_path / "nested" / "dir" / "reviews.db").exists()
    finally:
        store.close()


def test_data_survives_reopen(tmp_path):
    path = tmp_path / "reviews.db"
    store = SqliteReviewStore(path)
    seed_plan(store, "plan_1", at(2, 9), problem_id="prob_1")
    store.close()

    reopened = SqliteReviewStore(path)
    try:
        assert reopened.get_plan("plan_1").scheduled_at == at(2, 9)
        assert reopened.get_problem("prob_1").title == "Problem prob_1"
    finally:
        reopened.close()


def test_db_time_is_fixed_width_utc():
    assert to_db_time(at(2, 9)) == "2024-01-02T09:00:00.000000+00:00"
    assert to_db_time(None) is None
    assert from_db_time(None) is None


def test_offset_instants_are_normalized(sqlite_store):
    plus_two = timezone(timedelta(hours=2))
    sqlite_store.insert(Problem(id="prob_1", title="Two Sum"))
    seed_plan(sqlite_store, "plan_1", datetime(2024, 1, 2, 11, 0, tzinfo=plus_two), "prob_1")

    stored = sqlite_store.get_plan("plan_1")
    assert stored.scheduled_at == at(2, 9)
    assert stored.scheduled_at.utcoffset() == timedelta(0)


def test_bounds_compare_across_offsets(sqlite_store):
    seed_plan(sqlite_store, "plan_1", at(2, 9))
    plus_two = timezone(timedelta(hours=2))

    # 10:30 at +02:00 is 08:30 UTC, before the plan.
    before = datetime(2024, 1, 2, 10, 30, tzinfo=plus_two)
    assert sqlite_store.query(PlanFilter(scheduled_until=before)) == []


def test_naive_instants_treated_as_utc():
    assert to_db_time(datetime(2024, 1, 2, 9)) == to_db_time(at(2, 9))
