from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Course:
    course_id: int
    course_code: str
    course_name: str
    credits: int = 3
    department: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class CourseAssignment:
    """A course offered to one cohort (program, academic year, semester, year level).

    ``year_level`` is None when the offering applies to every year of the program.
    """

    assignment_id: int
    course_id: int
    program_id: int
    academic_year_id: int
    semester_id: int
    year_level: Optional[int]
    is_mandatory: bool = True
    max_students: Optional[int] = None
    program_name: Optional[str] = None
    program_code: Optional[str] = None
    semester_name: Optional[str] = None
    academic_year_name: Optional[str] = None


@dataclass(frozen=True)
class LecturerAssignment:
    """A lecturer delivering a course to one section."""

    lecturer_assignment_id: int
    lecturer_id: int
    course_id: int
    section_id: Optional[int]
    program_id: int
    semester_id: int
    academic_year_id: int
    is_primary: bool = True
    teaching_hours_per_week: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    program_name: Optional[str] = None
    program_code: Optional[str] = None
