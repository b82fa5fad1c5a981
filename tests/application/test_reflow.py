from datetime import timedelta

from conftest import at, seed_plan
from rehearse.application.reflow import reflow_successor, was_overdue
from rehearse.domain.models import ReviewPlan, ReviewStatus


def make_successor(scheduled_at, plan_id="plan_next"):
    return ReviewPlan(id=plan_id, problem_id="prob_x", scheduled_at=scheduled_at, level=2)


class TestWasOverdue:
    def test_due_yesterday_is_overdue(self):
        assert was_overdue(at(1, 23, 59), at(2, 0, 1))

    def test_due_earlier_today_is_not_overdue(self):
        assert not was_overdue(at(2, 0, 0), at(2, 18))

    def test_due_in_future_is_not_overdue(self):
        assert not was_overdue(at(3), at(2))


class TestReflowSuccessor:
    def test_moves_behind_latest_plan_in_week(self, store):
        seed_plan(store, "plan_tue", at(2, 9))
        seed_plan(store, "plan_fri", at(5, 18))
        successor = make_successor(at(3, 8))

        moved = reflow_successor(store, successor, at(1, 10))

        assert moved is True
        assert successor.scheduled_at == at(5, 18, 1)

    def test_successor_outside_week_is_untouched(self, store):
        seed_plan(store, "plan_fri", at(5, 18))
        successor = make_successor(at(9, 8))

        assert reflow_successor(store, successor, at(1, 10)) is False
        assert successor.scheduled_at == at(9, 8)

    def test_empty_week_leaves_successor(self, store):
        successor = make_successor(at(3, 8))
        assert reflow_successor(store, successor, at(1, 10)) is False
        assert successor.scheduled_at == at(3, 8)

    def test_completed_plans_do_not_count(self, store):
        seed_plan(store, "plan_done", at(6, 12), status=ReviewStatus.COMPLETED)
        successor = make_successor(at(3, 8))

        assert reflow_successor(store, successor, at(1, 10)) is False

    def test_tail_at_week_end_leaves_successor(self, store):
        week_end = at(8) - timedelta(microseconds=1)
        seed_plan(store, "plan_sun", week_end - timedelta(seconds=30))
        successor = make_successor(at(3, 8))

        assert reflow_successor(store, successor, at(1, 10)) is False
        assert successor.scheduled_at == at(3, 8)

    def test_successor_excluded_from_tail(self, store):
        successor = seed_plan(store, "plan_next", at(4, 8))
        seed_plan(store, "plan_tue", at(2, 9))

        assert reflow_successor(store, successor, at(1, 10)) is True
        assert successor.scheduled_at == at(2, 9, 1)
