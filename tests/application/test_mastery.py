import pytest

from conftest import T0, at
from rehearse.application.mastery import apply_average, apply_grade
from rehearse.domain.models import Problem


def make_problem(**kwargs) -> Problem:
    return Problem(id="prob_1", title="Two Sum", **kwargs)


@pytest.mark.parametrize(
    "mastery, score, expected",
    [
        (0, 5, 5),
        (2, 5, 5),
        (2, 4, 3),
        (5, 4, 5),
        (3, 3, 3),
        (3, 2, 2),
        (0, 2, 0),
        (3, 1, 1),
        (3, 0, 1),
        (1, 1, 0),
    ],
)
def test_apply_grade(mastery, score, expected):
    problem = make_problem(mastery=mastery)
    apply_grade(problem, score)
    assert problem.mastery == expected


def test_apply_average_first_review():
    problem = make_problem()
    apply_average(problem, 4, T0)

    assert problem.total_reviews == 1
    assert problem.average_score == 4.0
    assert problem.last_practiced_at == T0
    assert problem.updated_at == T0


def test_apply_average_running_mean():
    problem = make_problem(average_score=3.0, total_reviews=2)
    apply_average(problem, 5, at(3))

    # (3 * 2 + 5) / 3
    assert problem.average_score == pytest.approx(11 / 3)
    assert problem.total_reviews == 3


def test_apply_average_does_not_touch_mastery():
    problem = make_problem(mastery=2)
    apply_average(problem, 0, T0)
    assert problem.mastery == 2


def test_streak_grows_on_good_scores_and_resets():
    problem = make_problem()
    for score in (4, 5, 4):
        apply_average(problem, score, T0)
    assert problem.streak_count == 3

    apply_average(problem, 3, T0)
    assert problem.streak_count == 0
