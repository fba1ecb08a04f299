import pytest

from src.academic_system.academic_system.core.enums import GradeWeightPolicy
from src.academic_system.academic_system.grades.aggregator import calculate_final_grade, category_scores
from src.academic_system.academic_system.grades.calculator.factory import calculator_for
from src.academic_system.academic_system.grades.calculator.weighted_calculator import (
    NormalizedWeightedCalculator,
    RawWeightedCalculator,
)
from src.academic_system.academic_system.grades.model import GradeCategory, StudentGrade


def _categories(*weights):
    names = ["Homework", "Midterm", "Final", "Project"]
    return [GradeCategory(i + 1, 1, names[i], float(w)) for i, w in enumerate(weights)]


def _grades(*scores):
    return [StudentGrade(i + 1, 3, 1, i + 1, float(s)) for i, s in enumerate(scores) if s is not None]


def test_reference_course_gives_b_minus():
    final = calculate_final_grade(_categories(30, 30, 40), _grades(80, 70, 90))

    assert final.percentage == 81.0
    assert final.letter == "B-"
    assert final.grade_point == 2.7
    assert final.weights_balanced is True
    assert final.ungraded_categories == ()


def test_missing_category_counts_as_zero_and_is_reported():
    final = calculate_final_grade(_categories(30, 30, 40), _grades(80, 70, None))

    assert final.percentage == 45.0
    assert final.letter == "F"
    assert final.ungraded_categories == ("Final",)


def test_raw_policy_does_not_renormalise():
    final = calculate_final_grade(_categories(50, 30), _grades(100, 100))

    assert final.percentage == 80.0
    assert final.weights_total == 80.0
    assert final.weights_balanced is False


def test_normalized_policy_rescales_by_weight_total():
    final = calculate_final_grade(_categories(50, 30), _grades(100, 100), calculator=NormalizedWeightedCalculator())

    assert final.percentage == 100.0
    assert final.letter == "A+"


def test_result_is_clamped():
    final = calculate_final_grade(_categories(60, 60), _grades(100, 100))

    assert final.percentage == 100.0


def test_empty_categories_give_zero():
    final = calculate_final_grade([], [])

    assert final.percentage == 0.0
    assert final.letter == "F"
    assert NormalizedWeightedCalculator().weighted_percentage([], {}) == 0.0


def test_rounded_to_two_decimals():
    final = calculate_final_grade(_categories(33.33, 33.33, 33.34), _grades(71.11, 82.22, 93.33))

    assert final.percentage == round(final.percentage, 2)


def test_repeated_category_rows_are_averaged():
    scores = category_scores([StudentGrade(1, 3, 1, 1, 60.0), StudentGrade(2, 3, 1, 1, 80.0)])

    assert scores == {1: 70.0}


def test_higher_score_never_lowers_final_grade():
    categories = _categories(30, 30, 40)
    low = calculate_final_grade(categories, _grades(70, 70, 70))
    high = calculate_final_grade(categories, _grades(70, 90, 70))

    assert high.percentage >= low.percentage


@pytest.mark.parametrize(
    "policy, expected",
    [
        ("raw", RawWeightedCalculator),
        (GradeWeightPolicy.RAW, RawWeightedCalculator),
        ("normalized", NormalizedWeightedCalculator),
    ],
)
def test_calculator_factory(policy, expected):
    assert isinstance(calculator_for(policy), expected)


def test_calculator_factory_rejects_unknown_policy():
    with pytest.raises(ValueError):
        calculator_for("curved")


def test_letter_uses_unrounded_score():
    final = calculate_final_grade(_categories(100), _grades(96.996))

    assert final.percentage == 97.0
    assert final.letter == "A"
    assert final.grade_point == 4.0
