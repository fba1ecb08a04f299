from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence

from ..common.cache import EntityCache
from ..common.fetch import fetch_all
from ..common.validators import FieldErrors, require_non_empty, require_percentage
from ..core.constants import DEFAULT_PASSING_THRESHOLD
from ..core.exceptions import NotFoundError, ValidationError
from ..courses.model import Course
from ..courses.service import CourseService
from ..enrollments.model import EnrolledStudent
from ..enrollments.service import EnrollmentService
from .aggregator import calculate_final_grade, category_scores, weight_warning
from .calculator.base import GradeCalculator
from .calculator.weighted_calculator import RawWeightedCalculator
from .letters import calculate_gpa, is_passing
from .model import FinalGrade, GradeCategory, StudentGrade
from .repository import GradeRepository

logger = logging.getLogger(__name__)

GRADE_CATEGORIES = "grade_categories"
GRADES = "grades"


@dataclass(frozen=True)
class GradebookRow:
    student: EnrolledStudent
    scores: dict[int, Optional[float]]
    final: FinalGrade
    passing: bool


@dataclass(frozen=True)
class Gradebook:
    course_id: int
    categories: list[GradeCategory] = field(default_factory=list)
    rows: list[GradebookRow] = field(default_factory=list)
    warning: Optional[str] = None
    loaded: bool = True


@dataclass(frozen=True)
class CourseGrade:
    course: Course
    final: FinalGrade


@dataclass(frozen=True)
class StudentSummary:
    student_id: int
    courses: list[CourseGrade]
    gpa: float


class GradebookService:
    def __init__(
        self,
        grades: GradeRepository,
        enrollments: EnrollmentService,
        courses: CourseService,
        *,
        calculator: Optional[GradeCalculator] = None,
        passing_threshold: float = DEFAULT_PASSING_THRESHOLD,
        cache: Optional[EntityCache] = None,
    ):
        self._grades = grades
        self._enrollments = enrollments
        self._courses = courses
        self._calculator = calculator or RawWeightedCalculator()
        self._passing_threshold = float(passing_threshold)
        self._cache = cache or EntityCache(enabled=False)

    @property
    def passing_threshold(self) -> float:
        return self._passing_threshold

    def categories(self, course_id: int) -> Sequence[GradeCategory]:
        return self._cache.get_or_load(
            GRADE_CATEGORIES,
            (int(course_id),),
            lambda: self._grades.list_categories(int(course_id)),
        )

    def course_grades(self, course_id: int) -> Sequence[StudentGrade]:
        return self._cache.get_or_load(
            GRADES,
            ("course", int(course_id)),
            lambda: self._grades.list_grades(course_id=int(course_id)),
        )

    def final_grade(self, student_id: int, course_id: int) -> FinalGrade:
        grades = [g for g in self.course_grades(course_id) if g.student_id == int(student_id)]
        return calculate_final_grade(self.categories(course_id), grades, calculator=self._calculator)

    def final_grades_for_course(self, course_id: int, student_ids: Sequence[int]) -> dict[int, FinalGrade]:
        categories = self.categories(course_id)
        by_student: dict[int, list[StudentGrade]] = {int(s): [] for s in student_ids}
        for g in self.course_grades(course_id):
            if g.student_id in by_student:
                by_student[g.student_id].append(g)
        return {
            sid: calculate_final_grade(categories, rows, calculator=self._calculator)
            for sid, rows in by_student.items()
        }

    def course_gradebook(self, course_id: int) -> Gradebook:
        result = fetch_all(
            {
                "categories": lambda: self.categories(course_id),
                "grades": lambda: self.course_grades(course_id),
                "students": lambda: self._enrollments.list_students_for_course(course_id),
            }
        )
        resolved = result.get("students")
        if not result.ok or resolved is None or not resolved.loaded:
            logger.warning("gradebook for course %s not loaded: %s", course_id, result.errors)
            return Gradebook(course_id=int(course_id), loaded=False)

        categories = list(result.get("categories"))
        by_student: dict[int, list[StudentGrade]] = {}
        for g in result.get("grades"):
            by_student.setdefault(g.student_id, []).append(g)

        rows: list[GradebookRow] = []
        for student in resolved.students:
            own = by_student.get(student.student_id, [])
            scores = category_scores(own)
            final = calculate_final_grade(categories, own, calculator=self._calculator)
            rows.append(
                GradebookRow(
                    student=student,
                    scores={c.category_id: scores.get(c.category_id) for c in categories},
                    final=final,
                    passing=is_passing(final.percentage, self._passing_threshold),
                )
            )

        return Gradebook(
            course_id=int(course_id),
            categories=categories,
            rows=rows,
            warning=weight_warning(categories),
        )

    def save_categories(self, course_id: int, categories: Sequence[Mapping[str, Any]]) -> Optional[str]:
        """Replace the course's weighting scheme.

        Items with a ``category_id`` update that category; items without one
        are created; existing categories not listed are removed together with
        their grades. Returns a warning when the weights do not total 100.
        """

        self._courses.get_course(course_id)
        if not categories:
            raise ValidationError("Add at least one grade category.", {"categories": ["At least one category is required"]})

        existing = {c.category_id: c for c in self._grades.list_categories(int(course_id))}
        errors = FieldErrors()
        cleaned: list[tuple[Optional[int], Optional[str], Optional[float]]] = []
        seen_names: set[str] = set()

        for i, item in enumerate(categories):
            name = errors.run(require_non_empty, item.get("name"), f"categories[{i}].name")
            weight = errors.run(require_percentage, item.get("percentage"), f"categories[{i}].percentage")

            category_id = item.get("category_id")
            if category_id not in (None, ""):
                try:
                    category_id = int(category_id)
                except (TypeError, ValueError):
                    category_id = -1
                if category_id not in existing:
                    errors.add(f"categories[{i}].category_id", "Category does not belong to this course")
            else:
                category_id = None

            if name:
                key = name.lower()
                if key in seen_names:
                    errors.add(f"categories[{i}].name", "Category names must be unique")
                seen_names.add(key)

            cleaned.append((category_id, name, weight))

        errors.raise_if_any("Please correct the grade categories.")

        kept: set[int] = set()
        for category_id, name, weight in cleaned:
            if category_id is None:
                self._grades.create_category(course_id=int(course_id), name=name, percentage=weight)
            else:
                self._grades.update_category(category_id=category_id, name=name, percentage=weight)
                kept.add(category_id)

        for category_id in existing:
            if category_id not in kept:
                self._grades.delete_category(category_id)

        self._cache.invalidate(GRADE_CATEGORIES, GRADES)
        logger.info("grade categories saved for course %s (%d categories)", course_id, len(cleaned))

        total = sum(w for _, _, w in cleaned)
        if abs(total - 100.0) >= 0.01:
            return f"Category weights add up to {round(total, 2):g}%, not 100%."
        return None

    def record_grade(self, student_id: int, course_id: int, category_id: int, percentage: Any) -> int:
        errors = FieldErrors()
        score = errors.run(require_percentage, percentage, "percentage")
        category_ids = {c.category_id for c in self.categories(course_id)}
        if int(category_id) not in category_ids:
            errors.add("category_id", "Category does not belong to this course")
        errors.raise_if_any("Please correct the grade.")

        grade_id = self._grades.upsert_grade(
            student_id=int(student_id),
            course_id=int(course_id),
            category_id=int(category_id),
            percentage=score,
        )
        self._cache.invalidate(GRADES)
        return grade_id

    def delete_grade(self, grade_id: int) -> None:
        if not self._grades.delete_grade(int(grade_id)):
            raise NotFoundError("Grade not found")
        self._cache.invalidate(GRADES)

    def get_grade(self, grade_id: int) -> StudentGrade:
        grade = self._grades.get_grade(int(grade_id))
        if not grade:
            raise NotFoundError("Grade not found")
        return grade

    def student_grades(self, student_id: int, course_id: int) -> Sequence[StudentGrade]:
        return [g for g in self.course_grades(course_id) if g.student_id == int(student_id)]

    def student_summary(self, student_id: int) -> StudentSummary:
        courses = self._enrollments.courses_for_student(student_id)
        rows = [CourseGrade(course=c, final=self.final_grade(student_id, c.course_id)) for c in courses]
        return StudentSummary(
            student_id=int(student_id),
            courses=rows,
            gpa=calculate_gpa(r.final.percentage for r in rows),
        )
