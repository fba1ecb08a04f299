"""Derive the students of a course from cohort keys.

A course is offered to cohorts (program, semester, academic year and
optionally a year level); a student belongs to a cohort through an active
section enrollment. Nothing links a student to a course directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..core.enums import EnrollmentStatus
from ..courses.model import CourseAssignment, LecturerAssignment
from .model import EnrolledStudent, SectionEnrollment


@dataclass(frozen=True)
class CohortAssignment:
    assignment_id: int
    program_id: int
    semester_id: int
    academic_year_id: int
    year_level: Optional[int] = None
    is_mandatory: bool = True
    max_students: Optional[int] = None
    program_name: Optional[str] = None
    program_code: Optional[str] = None

    @classmethod
    def from_course_assignment(cls, a: CourseAssignment) -> "CohortAssignment":
        return cls(
            assignment_id=a.assignment_id,
            program_id=a.program_id,
            semester_id=a.semester_id,
            academic_year_id=a.academic_year_id,
            year_level=a.year_level,
            is_mandatory=a.is_mandatory,
            max_students=a.max_students,
            program_name=a.program_name,
            program_code=a.program_code,
        )

    @classmethod
    def from_lecturer_assignment(cls, a: LecturerAssignment) -> "CohortAssignment":
        # Lecturer assignments carry no year level, so they match every year.
        return cls(
            assignment_id=a.lecturer_assignment_id,
            program_id=a.program_id,
            semester_id=a.semester_id,
            academic_year_id=a.academic_year_id,
            year_level=None,
            is_mandatory=True,
            max_students=None,
            program_name=a.program_name,
            program_code=a.program_code,
        )

    def matches(self, e: SectionEnrollment) -> bool:
        return (
            e.status == EnrollmentStatus.ACTIVE
            and e.program_id == self.program_id
            and e.semester_id == self.semester_id
            and e.academic_year_id == self.academic_year_id
            and (self.year_level is None or e.year_level == self.year_level)
        )


def resolve_enrolled_students(
    assignments: Optional[Iterable[CohortAssignment]],
    enrollments: Optional[Sequence[SectionEnrollment]],
) -> list[EnrolledStudent]:
    """Students matched by at least one assignment, in first-match order.

    A student is kept once per (student, program, semester, academic year);
    every matching section code is collected on that entry. Missing input on
    either side gives an empty list.
    """

    if not assignments or not enrollments:
        return []

    order: list[tuple[int, int, int, int]] = []
    first: dict[tuple[int, int, int, int], tuple[CohortAssignment, SectionEnrollment]] = {}
    sections: dict[tuple[int, int, int, int], list[str]] = {}

    for a in assignments:
        for e in enrollments:
            if not a.matches(e):
                continue

            key = (e.student_id, e.program_id, e.semester_id, e.academic_year_id)
            if key not in first:
                first[key] = (a, e)
                sections[key] = []
                order.append(key)

            code = e.section_code
            if code and code not in sections[key]:
                sections[key].append(code)

    out: list[EnrolledStudent] = []
    for key in order:
        a, e = first[key]
        out.append(
            EnrolledStudent(
                student_id=e.student_id,
                student_name=e.student_name,
                student_number=e.student_number,
                program=e.program_name or a.program_name,
                program_code=e.program_code or a.program_code,
                program_id=e.program_id,
                semester_id=e.semester_id,
                academic_year_id=e.academic_year_id,
                year_level=e.year_level,
                sections=tuple(sections[key]),
                assignment_id=a.assignment_id,
                is_mandatory=a.is_mandatory,
                max_students=a.max_students,
                enrollment_id=e.enrollment_id,
                status=e.status,
            )
        )
    return out
