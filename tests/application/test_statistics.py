from dataclasses import replace

from conftest import at, seed_plan
from rehearse.application.statistics import compute_statistics
from rehearse.domain.models import Problem, ReviewStatus


def complete_plan(store, plan_id, completed_at, score):
    plan = store.get_plan(plan_id)
    store.update(
        replace(
            plan,
            status=ReviewStatus.COMPLETED,
            completed_at=completed_at,
            score=score,
            confidence=3,
        )
    )


def test_never_reviewed_returns_none(store):
    seed_plan(store, "plan_a", at(2), problem_id="prob_a")
    problem = store.get_problem("prob_a")

    assert compute_statistics(store, problem, at(2)) is None


def test_summary_over_history(store):
    store.insert(Problem(id="prob_a", title="Two Sum", streak_count=2))
    seed_plan(store, "plan_1", at(2), problem_id="prob_a")
    seed_plan(store, "plan_2", at(5), problem_id="prob_a")
    seed_plan(store, "plan_3", at(12), problem_id="prob_a")
    seed_plan(store, "plan_4", at(20), problem_id="prob_a")
    complete_plan(store, "plan_1", at(2, 9), 2)
    complete_plan(store, "plan_2", at(5, 9), 4)
    complete_plan(store, "plan_3", at(11, 9), 5)

    stats = compute_statistics(store, store.get_problem("prob_a"), at(12, 12))

    assert stats.total_reviews == 3
    assert abs(stats.average_score - 11 / 3) < 1e-9
    assert stats.completion_rate == 0.75
    assert stats.average_interval_days == 4.5
    assert stats.current_streak == 2
    # Week of Mon 2024-01-08
    assert stats.reviews_this_week == 1
    assert stats.reviews_this_month == 3


def test_single_review_has_zero_interval(store):
    seed_plan(store, "plan_1", at(2), problem_id="prob_a")
    complete_plan(store, "plan_1", at(2, 9), 3)

    stats = compute_statistics(store, store.get_problem("prob_a"), at(2, 10))

    assert stats.average_interval_days == 0.0
    assert stats.completion_rate == 1.0


def test_other_problems_are_ignored(store):
    seed_plan(store, "plan_1", at(2), problem_id="prob_a")
    seed_plan(store, "plan_2", at(2), problem_id="prob_b")
    complete_plan(store, "plan_2", at(2, 9), 5)

    assert compute_statistics(store, store.get_problem("prob_a"), at(3)) is None
