from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Sequence

from ..model import GradeCategory


class GradeCalculator(ABC):
    """Calculator interface (Strategy Pattern for category weighting)."""

    @abstractmethod
    def weighted_percentage(self, categories: Sequence[GradeCategory], scores: Mapping[int, float]) -> float:
        """Unclamped weighted score; a category missing from ``scores`` counts as 0."""
        raise NotImplementedError
