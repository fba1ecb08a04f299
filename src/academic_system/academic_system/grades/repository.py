from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import GradeCategory, StudentGrade


class GradeRepository(Protocol):
    # Categories
    def list_categories(self, course_id: int) -> Sequence[GradeCategory]:
        raise NotImplementedError

    def create_category(self, *, course_id: int, name: str, percentage: float, is_default: bool = False) -> int:
        raise NotImplementedError

    def update_category(self, *, category_id: int, name: str, percentage: float) -> bool:
        raise NotImplementedError

    def delete_category(self, category_id: int) -> bool:
        raise NotImplementedError

    # Grades
    def get_grade(self, grade_id: int) -> Optional[StudentGrade]:
        raise NotImplementedError

    def list_grades(self, *, course_id: Optional[int] = None, student_id: Optional[int] = None) -> Sequence[StudentGrade]:
        raise NotImplementedError

    def upsert_grade(self, *, student_id: int, course_id: int, category_id: int, percentage: float) -> int:
        raise NotImplementedError

    def delete_grade(self, grade_id: int) -> bool:
        raise NotImplementedError
