from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class GradeCategory:
    category_id: int
    course_id: int
    name: str
    percentage: float
    is_default: bool = False


@dataclass(frozen=True)
class StudentGrade:
    grade_id: int
    student_id: int
    course_id: int
    category_id: int
    percentage: float
    category_name: Optional[str] = None


@dataclass(frozen=True)
class FinalGrade:
    """Weighted course result for one student.

    ``ungraded_categories`` names the categories with no recorded score; they
    still count as 0 in ``percentage``.
    """

    percentage: float
    letter: str
    grade_point: float
    weights_total: float
    weights_balanced: bool
    ungraded_categories: tuple[str, ...] = field(default_factory=tuple)
