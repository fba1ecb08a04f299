from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional, Sequence

from .calculator.base import GradeCalculator
from .calculator.weighted_calculator import RawWeightedCalculator
from .letters import grade_point, letter_for
from .model import FinalGrade, GradeCategory, StudentGrade


def category_scores(grades: Iterable[StudentGrade]) -> dict[int, float]:
    """One score per category; several rows for a category are averaged."""

    buckets: dict[int, list[float]] = defaultdict(list)
    for g in grades:
        buckets[g.category_id].append(float(g.percentage))
    return {cid: sum(values) / len(values) for cid, values in buckets.items()}


def weights_total(categories: Sequence[GradeCategory]) -> float:
    return round(sum(float(c.percentage) for c in categories), 2)


def weights_balanced(categories: Sequence[GradeCategory]) -> bool:
    return abs(weights_total(categories) - 100.0) < 0.01


def weight_warning(categories: Sequence[GradeCategory]) -> Optional[str]:
    if not categories or weights_balanced(categories):
        return None
    return f"Category weights add up to {weights_total(categories):g}%, not 100%."


def calculate_final_grade(
    categories: Sequence[GradeCategory],
    grades: Iterable[StudentGrade],
    *,
    calculator: Optional[GradeCalculator] = None,
) -> FinalGrade:
    calculator = calculator or RawWeightedCalculator()
    scores = category_scores(grades)

    clamped = min(max(calculator.weighted_percentage(categories, scores), 0.0), 100.0)
    # Letter from the unrounded score: 96.996 shows as 97.0 but is still an A.
    letter = letter_for(clamped)
    percentage = round(clamped, 2)

    return FinalGrade(
        percentage=percentage,
        letter=letter,
        grade_point=grade_point(letter),
        weights_total=weights_total(categories),
        weights_balanced=weights_balanced(categories),
        ungraded_categories=tuple(c.name for c in categories if c.category_id not in scores),
    )
