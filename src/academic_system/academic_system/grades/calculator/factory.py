from __future__ import annotations

from ...core.enums import GradeWeightPolicy
from .base import GradeCalculator
from .weighted_calculator import NormalizedWeightedCalculator, RawWeightedCalculator


def calculator_for(policy: GradeWeightPolicy | str) -> GradeCalculator:
    """Factory Pattern: pick the weighting rule named in settings."""

    policy = GradeWeightPolicy(policy)
    if policy == GradeWeightPolicy.NORMALIZED:
        return NormalizedWeightedCalculator()
    return RawWeightedCalculator()
