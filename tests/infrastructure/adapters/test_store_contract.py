"""Behaviour every ReviewStore adapter must share."""

from dataclasses import replace

import pytest

from conftest import at, seed_plan
from rehearse.domain.errors import StorageWriteFailed, UnknownEntity
from rehearse.domain.models import Problem, ReviewPlan, ReviewStatus
from rehearse.domain.ports import LATEST_FIRST, PlanFilter, PlanSort


def test_problem_round_trip(any_store):
    problem = Problem(
        id="prob_1",
        title="Two Sum",
        source="leetcode",
        tags=["array", "hash"],
        mastery=3,
        last_practiced_at=at(2, 9),
        average_score=3.5,
        total_reviews=2,
        streak_count=1,
        created_at=at(1),
        updated_at=at(2, 9),
    )
    any_store.insert(problem)

    assert any_store.get_problem("prob_1") == problem


def test_plan_round_trip(any_store):
    any_store.insert(Problem(id="prob_1", title="Two Sum"))
    plan = ReviewPlan(
        id="plan_1",
        problem_id="prob_1",
        scheduled_at=at(2, 9, 30),
        status=ReviewStatus.COMPLETED,
        level=4,
        score=5,
        confidence=2,
        completed_at=at(2, 10),
        time_spent=95.5,
    )
    any_store.insert(plan)

    assert any_store.get_plan("plan_1") == plan


def test_missing_ids_return_none(any_store):
    assert any_store.get_problem("prob_missing") is None
    assert any_store.get_plan("plan_missing") is None


def test_duplicate_insert_fails(any_store):
    any_store.insert(Problem(id="prob_1", title="Two Sum"))
    with pytest.raises(StorageWriteFailed):
        any_store.insert(Problem(id="prob_1", title="Again"))


def test_update_unknown_fails(any_store):
    with pytest.raises(UnknownEntity):
        any_store.update(Problem(id="prob_missing", title="Ghost"))


def test_returned_entities_are_detached(any_store):
    seed_plan(any_store, "plan_1", at(2))
    plan = any_store.get_plan("plan_1")
    plan.level = 8

    assert any_store.get_plan("plan_1").level == 1


def test_update_replaces_row(any_store):
    plan = seed_plan(any_store, "plan_1", at(2))
    any_store.update(replace(plan, status=ReviewStatus.SKIPPED, scheduled_at=at(3)))

    stored = any_store.get_plan("plan_1")
    assert stored.status == ReviewStatus.SKIPPED
    assert stored.scheduled_at == at(3)


class TestQuery:
    @pytest.fixture
    def seeded(self, any_store):
        seed_plan(any_store, "plan_b", at(2, 9), problem_id="prob_a")
        seed_plan(any_store, "plan_a", at(2, 9), problem_id="prob_b")
        seed_plan(any_store, "plan_c", at(3), problem_id="prob_a", status=ReviewStatus.COMPLETED)
        seed_plan(any_store, "plan_d", at(4), problem_id="prob_b", status=ReviewStatus.POSTPONED)
        return any_store

    def test_ascending_with_id_tiebreak(self, seeded):
        assert [p.id for p in seeded.query(PlanFilter())] == [
            "plan_a",
            "plan_b",
            "plan_c",
            "plan_d",
        ]

    def test_latest_first(self, seeded):
        assert [p.id for p in seeded.query(PlanFilter(), LATEST_FIRST)] == ["plan_d"]

    def test_descending_limit(self, seeded):
        plans = seeded.query(PlanFilter(), PlanSort(descending=True, limit=3))
        assert [p.id for p in plans] == ["plan_d", "plan_c", "plan_b"]

    def test_by_problem_and_status(self, seeded):
        plans = seeded.query(
            PlanFilter(problem_id="prob_a", statuses=frozenset({ReviewStatus.PENDING}))
        )
        assert [p.id for p in plans] == ["plan_b"]

    def test_empty_status_set_matches_nothing(self, seeded):
        assert seeded.query(PlanFilter(statuses=frozenset())) == []

    def test_time_bounds(self, seeded):
        assert [p.id for p in seeded.query(PlanFilter(scheduled_from=at(3)))] == [
            "plan_c",
            "plan_d",
        ]
        assert [p.id for p in seeded.query(PlanFilter(scheduled_before=at(3)))] == [
            "plan_a",
            "plan_b",
        ]
        assert [p.id for p in seeded.query(PlanFilter(scheduled_until=at(3)))] == [
            "plan_a",
            "plan_b",
            "plan_c",
        ]

    def test_exclude_id(self, seeded):
        plans = seeded.query(PlanFilter(problem_id="prob_b", exclude_id="plan_a"))
        assert [p.id for p in plans] == ["plan_d"]


class TestTransaction:
    def test_commits_on_success(self, any_store):
        with any_store.transaction():
            any_store.insert(Problem(id="prob_1", title="Two Sum"))
            seed_plan(any_store, "plan_1", at(2), problem_id="prob_1")

        assert any_store.get_problem("prob_1") is not None
        assert any_store.get_plan("plan_1") is not None

    def test_rolls_back_on_error(self, any_store):
        any_store.insert(Problem(id="prob_1", title="Two Sum", mastery=1))

        with pytest.raises(RuntimeError):
            with any_store.transaction():
                any_store.update(Problem(id="prob_1", title="Two Sum", mastery=4))
                seed_plan(any_store, "plan_1", at(2), problem_id="prob_1")
                raise RuntimeError("abort")

        assert any_store.get_problem("prob_1").mastery == 1
        assert any_store.get_plan("plan_1") is None

    def test_nested_transaction_joins_outer(self, any_store):
        with pytest.raises(RuntimeError):
            with any_store.transaction():
                with any_store.transaction():
                    any_store.insert(Problem(id="prob_1", title="Two Sum"))
                raise RuntimeError("abort")

        assert any_store.get_problem("prob_1") is None

    def test_failed_write_rolls_back_earlier_writes(self, any_store):
        any_store.insert(Problem(id="prob_dup", title="Existing"))

        with pytest.raises(StorageWriteFailed):
            with any_store.transaction():
                any_store.insert(Problem(id="prob_new", title="New"))
                any_store.insert(Problem(id="prob_dup", title="Clash"))

        assert any_store.get_problem("prob_new") is None

    def test_store_usable_after_rollback(self, any_store):
        with pytest.raises(RuntimeError):
            with any_store.transaction():
                raise RuntimeError("abort")

        with any_store.transaction():
            any_store.insert(Problem(id="prob_1", title="Two Sum"))
        assert any_store.get_problem("prob_1") is not None


def test_unsupported_entity_rejected(any_store):
    with pytest.raises(TypeError):
        any_store.insert(object())
