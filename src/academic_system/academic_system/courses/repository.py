from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Course, CourseAssignment, LecturerAssignment


class CourseRepository(Protocol):
    # Courses
    def get_course(self, course_id: int) -> Optional[Course]:
        raise NotImplementedError

    def get_course_by_code(self, course_code: str) -> Optional[Course]:
        raise NotImplementedError

    def list_courses(self) -> Sequence[Course]:
        raise NotImplementedError

    def create_course(
        self,
        *,
        course_code: str,
        course_name: str,
        credits: int,
        department: Optional[str],
        description: Optional[str],
    ) -> int:
        raise NotImplementedError

    def update_course(
        self,
        *,
        course_id: int,
        course_code: str,
        course_name: str,
        credits: int,
        department: Optional[str],
        description: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def delete_course(self, course_id: int) -> bool:
        raise NotImplementedError

    # Course assignments (cohort offerings)
    def get_assignment(self, assignment_id: int) -> Optional[CourseAssignment]:
        raise NotImplementedError

    def list_assignments(self, *, course_id: Optional[int] = None) -> Sequence[CourseAssignment]:
        raise NotImplementedError

    def find_assignment(
        self,
        *,
        course_id: int,
        program_id: int,
        academic_year_id: int,
        semester_id: int,
        year_level: Optional[int],
    ) -> Optional[CourseAssignment]:
        raise NotImplementedError

    def create_assignment(
        self,
        *,
        course_id: int,
        program_id: int,
        academic_year_id: int,
        semester_id: int,
        year_level: Optional[int],
        is_mandatory: bool,
        max_students: Optional[int],
    ) -> int:
        raise NotImplementedError

    def update_assignment(
        self,
        *,
        assignment_id: int,
        year_level: Optional[int],
        is_mandatory: bool,
        max_students: Optional[int],
    ) -> bool:
        raise NotImplementedError

    def delete_assignment(self, assignment_id: int) -> bool:
        raise NotImplementedError

    # Lecturer assignments
    def list_lecturer_assignments(
        self,
        *,
        lecturer_id: Optional[int] = None,
        course_id: Optional[int] = None,
    ) -> Sequence[LecturerAssignment]:
        raise NotImplementedError

    def create_lecturer_assignment(
        self,
        *,
        lecturer_id: int,
        course_id: int,
        section_id: Optional[int],
        program_id: int,
        semester_id: int,
        academic_year_id: int,
        is_primary: bool,
        teaching_hours_per_week: Optional[int],
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> int:
        raise NotImplementedError

    def delete_lecturer_assignment(self, lecturer_assignment_id: int) -> bool:
        raise NotImplementedError
