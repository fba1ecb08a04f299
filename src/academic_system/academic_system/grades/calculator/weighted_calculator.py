from __future__ import annotations

from typing import Mapping, Sequence

from ..model import GradeCategory
from .base import GradeCalculator


class RawWeightedCalculator(GradeCalculator):
    """sum(score * weight / 100), weights taken as-is even when they do not total 100."""

    def weighted_percentage(self, categories: Sequence[GradeCategory], scores: Mapping[int, float]) -> float:
        return sum(float(scores.get(c.category_id, 0.0)) * float(c.percentage) / 100.0 for c in categories)


class NormalizedWeightedCalculator(GradeCalculator):
    """Raw sum rescaled by the weight total, so 50+30 weights behave like 62.5+37.5."""

    def weighted_percentage(self, categories: Sequence[GradeCategory], scores: Mapping[int, float]) -> float:
        total = sum(float(c.percentage) for c in categories)
        if total <= 0:
            return 0.0
        raw = RawWeightedCalculator().weighted_percentage(categories, scores)
        return raw * 100.0 / total
