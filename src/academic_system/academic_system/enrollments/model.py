from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.enums import EnrollmentStatus


@dataclass(frozen=True)
class Section:
    section_id: int
    section_code: str
    program_id: int
    academic_year_id: int
    semester_id: int
    year_level: int
    max_capacity: Optional[int] = None
    is_active: bool = True
    program_name: Optional[str] = None
    program_code: Optional[str] = None


@dataclass(frozen=True)
class SectionEnrollment:
    """A student placed in a section for one program, semester and academic year."""

    enrollment_id: int
    student_id: int
    section_id: int
    program_id: int
    semester_id: int
    academic_year_id: int
    year_level: int
    status: EnrollmentStatus
    enrollment_date: Optional[date] = None
    student_name: Optional[str] = None
    student_number: Optional[str] = None
    section_code: Optional[str] = None
    program_name: Optional[str] = None
    program_code: Optional[str] = None


@dataclass(frozen=True)
class EnrolledStudent:
    """A student derived to be taking a course through a cohort match."""

    student_id: int
    student_name: Optional[str]
    student_number: Optional[str]
    program: Optional[str]
    program_code: Optional[str]
    program_id: int
    semester_id: int
    academic_year_id: int
    year_level: int
    sections: tuple[str, ...]
    assignment_id: int
    is_mandatory: bool
    max_students: Optional[int]
    enrollment_id: int
    status: EnrollmentStatus


@dataclass(frozen=True)
class ResolvedEnrollment:
    """Resolver output plus whether the inputs were actually loaded.

    ``loaded`` is False when either side failed to load, so an empty list
    there means "unknown", not "nobody".
    """

    students: list[EnrolledStudent] = field(default_factory=list)
    loaded: bool = True
