from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional, Sequence

from ..common.cache import EntityCache
from ..common.validators import FieldErrors, require_int_range, require_non_empty
from ..core.constants import MAX_TEACHING_HOURS, MAX_YEAR_LEVEL, MIN_TEACHING_HOURS, MIN_YEAR_LEVEL
from ..core.exceptions import BusinessRuleError, NotFoundError
from .model import Course, CourseAssignment, LecturerAssignment
from .repository import CourseRepository

logger = logging.getLogger(__name__)

COURSES = "courses"
COURSE_ASSIGNMENTS = "course_assignments"
LECTURER_ASSIGNMENTS = "lecturer_assignments"


def _optional_text(value: Any) -> Optional[str]:
    text = str(value).strip() if value is not None else ""
    return text or None


def _optional_year_level(errors: FieldErrors, value: Any) -> Optional[int]:
    # Blank means the offering covers every year of the program.
    if value is None or str(value).strip() == "":
        return None
    return errors.run(require_int_range, value, "year_level", MIN_YEAR_LEVEL, MAX_YEAR_LEVEL)


def _optional_positive(errors: FieldErrors, value: Any, field_name: str) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        errors.add(field_name, "Must be a whole number")
        return None
    if number <= 0:
        errors.add(field_name, "Must be greater than 0")
        return None
    return number


class CourseService:
    def __init__(self, courses: CourseRepository, *, cache: Optional[EntityCache] = None):
        self._courses = courses
        self._cache = cache or EntityCache(enabled=False)

    # Reads
    def get_course(self, course_id: int) -> Course:
        course = self._courses.get_course(int(course_id))
        if not course:
            raise NotFoundError("Course not found")
        return course

    def list_courses(self) -> Sequence[Course]:
        return self._cache.get_or_load(COURSES, ("all",), self._courses.list_courses)

    def list_assignments(self, course_id: Optional[int] = None) -> Sequence[CourseAssignment]:
        return self._cache.get_or_load(
            COURSE_ASSIGNMENTS,
            ("course", course_id),
            lambda: self._courses.list_assignments(course_id=course_id),
        )

    def list_lecturer_assignments(
        self,
        *,
        lecturer_id: Optional[int] = None,
        course_id: Optional[int] = None,
    ) -> Sequence[LecturerAssignment]:
        return self._cache.get_or_load(
            LECTURER_ASSIGNMENTS,
            ("lecturer", lecturer_id, course_id),
            lambda: self._courses.list_lecturer_assignments(lecturer_id=lecturer_id, course_id=course_id),
        )

    def courses_for_lecturer(self, lecturer_id: int) -> list[Course]:
        """Distinct courses a lecturer is assigned to, ordered by code."""

        seen: set[int] = set()
        out: list[Course] = []
        for la in self.list_lecturer_assignments(lecturer_id=int(lecturer_id)):
            if la.course_id in seen:
                continue
            seen.add(la.course_id)
            course = self._courses.get_course(la.course_id)
            if course:
                out.append(course)
        out.sort(key=lambda c: c.course_code)
        return out

    def is_lecturer_of(self, lecturer_id: int, course_id: int) -> bool:
        return any(la.course_id == int(course_id) for la in self.list_lecturer_assignments(lecturer_id=int(lecturer_id)))

    # Courses
    def _validate_course(self, data: dict) -> dict:
        errors = FieldErrors()
        code = errors.run(require_non_empty, data.get("course_code"), "course_code")
        name = errors.run(require_non_empty, data.get("course_name"), "course_name")
        credits = errors.run(require_int_range, data.get("credits", 3), "credits", 1, 10)
        errors.raise_if_any("Please correct the highlighted fields.")
        return {
            "course_code": code.upper(),
            "course_name": name,
            "credits": credits,
            "department": _optional_text(data.get("department")),
            "description": _optional_text(data.get("description")),
        }

    def create_course(self, data: dict) -> int:
        values = self._validate_course(data)
        if self._courses.get_course_by_code(values["course_code"]):
            raise BusinessRuleError(f"Course code {values['course_code']} already exists")

        course_id = self._courses.create_course(**values)
        self._cache.invalidate(COURSES)
        logger.info("course created: id=%s code=%s", course_id, values["course_code"])
        return course_id

    def update_course(self, course_id: int, data: dict) -> None:
        self.get_course(course_id)
        values = self._validate_course(data)
        other = self._courses.get_course_by_code(values["course_code"])
        if other and other.course_id != int(course_id):
            raise BusinessRuleError(f"Course code {values['course_code']} already exists")

        self._courses.update_course(course_id=int(course_id), **values)
        self._cache.invalidate(COURSES)

    def delete_course(self, course_id: int) -> None:
        if not self._courses.delete_course(int(course_id)):
            raise NotFoundError("Course not found")
        self._cache.invalidate(COURSES, COURSE_ASSIGNMENTS, LECTURER_ASSIGNMENTS)
        logger.info("course deleted: id=%s", course_id)

    # Course assignments
    def create_assignment(self, course_id: int, data: dict) -> int:
        self.get_course(course_id)

        errors = FieldErrors()
        program_id = errors.run(require_int_range, data.get("program_id"), "program_id", 1, 2**31 - 1)
        academic_year_id = errors.run(require_int_range, data.get("academic_year_id"), "academic_year_id", 1, 2**31 - 1)
        semester_id = errors.run(require_int_range, data.get("semester_id"), "semester_id", 1, 2**31 - 1)
        year_level = _optional_year_level(errors, data.get("year_level"))
        max_students = _optional_positive(errors, data.get("max_students"), "max_students")
        errors.raise_if_any("Please correct the highlighted fields.")

        existing = self._courses.find_assignment(
            course_id=int(course_id),
            program_id=program_id,
            academic_year_id=academic_year_id,
            semester_id=semester_id,
            year_level=year_level,
        )
        if existing:
            raise BusinessRuleError("This course is already assigned to that program, year and semester")

        assignment_id = self._courses.create_assignment(
            course_id=int(course_id),
            program_id=program_id,
            academic_year_id=academic_year_id,
            semester_id=semester_id,
            year_level=year_level,
            is_mandatory=_as_flag(data.get("is_mandatory", True)),
            max_students=max_students,
        )
        self._cache.invalidate(COURSE_ASSIGNMENTS)
        return assignment_id

    def update_assignment(self, assignment_id: int, data: dict) -> None:
        current = self._courses.get_assignment(int(assignment_id))
        if not current:
            raise NotFoundError("Course assignment not found")

        errors = FieldErrors()
        year_level = _optional_year_level(errors, data.get("year_level"))
        max_students = _optional_positive(errors, data.get("max_students"), "max_students")
        errors.raise_if_any("Please correct the highlighted fields.")

        if year_level != current.year_level:
            clash = self._courses.find_assignment(
                course_id=current.course_id,
                program_id=current.program_id,
                academic_year_id=current.academic_year_id,
                semester_id=current.semester_id,
                year_level=year_level,
            )
            if clash and clash.assignment_id != current.assignment_id:
                raise BusinessRuleError("This course is already assigned to that program, year and semester")

        self._courses.update_assignment(
            assignment_id=int(assignment_id),
            year_level=year_level,
            is_mandatory=_as_flag(data.get("is_mandatory", current.is_mandatory)),
            max_students=max_students,
        )
        self._cache.invalidate(COURSE_ASSIGNMENTS)

    def delete_assignment(self, assignment_id: int) -> None:
        if not self._courses.delete_assignment(int(assignment_id)):
            raise NotFoundError("Course assignment not found")
        self._cache.invalidate(COURSE_ASSIGNMENTS)

    # Lecturer assignments
    def assign_lecturer(self, course_id: int, data: dict) -> int:
        self.get_course(course_id)

        errors = FieldErrors()
        lecturer_id = errors.run(require_int_range, data.get("lecturer_id"), "lecturer_id", 1, 2**31 - 1)
        program_id = errors.run(require_int_range, data.get("program_id"), "program_id", 1, 2**31 - 1)
        academic_year_id = errors.run(require_int_range, data.get("academic_year_id"), "academic_year_id", 1, 2**31 - 1)
        semester_id = errors.run(require_int_range, data.get("semester_id"), "semester_id", 1, 2**31 - 1)
        section_id = _optional_positive(errors, data.get("section_id"), "section_id")
        hours = None
        if data.get("teaching_hours_per_week") not in (None, ""):
            hours = errors.run(
                require_int_range,
                data.get("teaching_hours_per_week"),
                "teaching_hours_per_week",
                MIN_TEACHING_HOURS,
                MAX_TEACHING_HOURS,
            )
        start_date = _coerce_date(errors, data.get("start_date"), "start_date")
        end_date = _coerce_date(errors, data.get("end_date"), "end_date")
        if start_date and end_date and end_date < start_date:
            errors.add("end_date", "End date must be after the start date")
        errors.raise_if_any("Please correct the highlighted fields.")

        for la in self._courses.list_lecturer_assignments(lecturer_id=lecturer_id, course_id=int(course_id)):
            if (
                la.program_id == program_id
                and la.academic_year_id == academic_year_id
                and la.semester_id == semester_id
                and la.section_id == section_id
            ):
                raise BusinessRuleError("The lecturer is already assigned to this course and section")

        lecturer_assignment_id = self._courses.create_lecturer_assignment(
            lecturer_id=lecturer_id,
            course_id=int(course_id),
            section_id=section_id,
            program_id=program_id,
            semester_id=semester_id,
            academic_year_id=academic_year_id,
            is_primary=_as_flag(data.get("is_primary", True)),
            teaching_hours_per_week=hours,
            start_date=start_date,
            end_date=end_date,
        )
        self._cache.invalidate(LECTURER_ASSIGNMENTS)
        logger.info("lecturer %s assigned to course %s", lecturer_id, course_id)
        return lecturer_assignment_id

    def unassign_lecturer(self, lecturer_assignment_id: int) -> None:
        if not self._courses.delete_lecturer_assignment(int(lecturer_assignment_id)):
            raise NotFoundError("Lecturer assignment not found")
        self._cache.invalidate(LECTURER_ASSIGNMENTS)


def _as_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _coerce_date(errors: FieldErrors, value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        errors.add(field_name, "Use the format YYYY-MM-DD")
        return None


