from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..common.cache import EntityCache
from ..common.datetime_utils import now_local
from ..common.fetch import fetch_all
from ..core.enums import EnrollmentStatus
from ..core.exceptions import BusinessRuleError, NotFoundError
from ..courses.model import Course
from ..courses.service import CourseService
from .model import ResolvedEnrollment, Section, SectionEnrollment
from .repository import EnrollmentRepository
from .resolver import CohortAssignment, resolve_enrolled_students

logger = logging.getLogger(__name__)

ENROLLMENTS = "enrollments"
SECTIONS = "sections"


class EnrollmentService:
    def __init__(
        self,
        enrollments: EnrollmentRepository,
        courses: CourseService,
        *,
        cache: Optional[EntityCache] = None,
    ):
        self._enrollments = enrollments
        self._courses = courses
        self._cache = cache or EntityCache(enabled=False)

    # Reads
    def list_sections(self) -> Sequence[Section]:
        return self._cache.get_or_load(SECTIONS, ("active",), lambda: self._enrollments.list_sections(active_only=True))

    def all_enrollments(self) -> Sequence[SectionEnrollment]:
        return self._cache.get_or_load(ENROLLMENTS, ("all",), lambda: self._enrollments.list_enrollments())

    def list_for_student(self, student_id: int) -> Sequence[SectionEnrollment]:
        return self._cache.get_or_load(
            ENROLLMENTS,
            ("student", int(student_id)),
            lambda: self._enrollments.list_enrollments(student_id=int(student_id)),
        )

    def list_students_for_course(self, course_id: int) -> ResolvedEnrollment:
        result = fetch_all(
            {
                "assignments": lambda: self._courses.list_assignments(int(course_id)),
                "enrollments": self.all_enrollments,
            }
        )
        if not result.ok:
            logger.warning("students for course %s not loaded: %s", course_id, result.errors)
            return ResolvedEnrollment(students=[], loaded=False)

        cohorts = [CohortAssignment.from_course_assignment(a) for a in result.get("assignments")]
        return ResolvedEnrollment(students=resolve_enrolled_students(cohorts, result.get("enrollments")))

    def list_students_for_lecturer(self, lecturer_id: int, course_id: Optional[int] = None) -> ResolvedEnrollment:
        result = fetch_all(
            {
                "assignments": lambda: self._courses.list_lecturer_assignments(
                    lecturer_id=int(lecturer_id),
                    course_id=int(course_id) if course_id is not None else None,
                ),
                "enrollments": self.all_enrollments,
            }
        )
        if not result.ok:
            logger.warning("students for lecturer %s not loaded: %s", lecturer_id, result.errors)
            return ResolvedEnrollment(students=[], loaded=False)

        cohorts = [CohortAssignment.from_lecturer_assignment(a) for a in result.get("assignments")]
        return ResolvedEnrollment(students=resolve_enrolled_students(cohorts, result.get("enrollments")))

    def courses_for_student(self, student_id: int) -> list[Course]:
        """Courses offered to any cohort the student is actively enrolled in."""

        active = [e for e in self.list_for_student(student_id) if e.status == EnrollmentStatus.ACTIVE]
        if not active:
            return []

        course_ids: set[int] = set()
        for a in self._courses.list_assignments():
            cohort = CohortAssignment.from_course_assignment(a)
            if any(cohort.matches(e) for e in active):
                course_ids.add(a.course_id)

        courses = [c for c in self._courses.list_courses() if c.course_id in course_ids]
        return sorted(courses, key=lambda c: c.course_code)

    def is_enrolled_in_course(self, student_id: int, course_id: int) -> bool:
        return any(c.course_id == int(course_id) for c in self.courses_for_student(student_id))

    def has_active_enrollment_in_section(self, student_id: int, section_id: int) -> bool:
        return any(
            e.section_id == int(section_id) and e.status == EnrollmentStatus.ACTIVE
            for e in self.list_for_student(student_id)
        )

    # Writes
    def enroll_student(self, student_id: int, section_id: int, enrollment_date: Optional[date] = None) -> int:
        section = self._enrollments.get_section(int(section_id))
        if not section:
            raise NotFoundError("Section not found")
        if not section.is_active:
            raise BusinessRuleError(f"Section {section.section_code} is not open for enrollment")

        # Read-then-write: two concurrent requests can both pass this check.
        existing = self._enrollments.find_active_for_cohort(
            student_id=int(student_id),
            program_id=section.program_id,
            semester_id=section.semester_id,
            academic_year_id=section.academic_year_id,
        )
        if existing:
            raise BusinessRuleError(
                f"Student is already enrolled in section {existing.section_code or existing.section_id} "
                "for this program, semester and academic year"
            )

        if self._enrollments.list_enrollments(student_id=int(student_id), section_id=section.section_id):
            raise BusinessRuleError("Student already has an enrollment record in this section")

        if section.max_capacity is not None:
            taken = self._enrollments.count_active_in_section(section.section_id)
            if taken >= section.max_capacity:
                raise BusinessRuleError(f"Section {section.section_code} is full ({taken}/{section.max_capacity})")

        enrollment_id = self._enrollments.create_enrollment(
            student_id=int(student_id),
            section=section,
            enrollment_date=enrollment_date or now_local().date(),
        )
        self._cache.invalidate(ENROLLMENTS)
        logger.info("student %s enrolled in section %s (id=%s)", student_id, section.section_code, enrollment_id)
        return enrollment_id

    def _transition(self, enrollment_id: int, status: EnrollmentStatus) -> None:
        enrollment = self._enrollments.get_enrollment(int(enrollment_id))
        if not enrollment:
            raise NotFoundError("Enrollment not found")
        if enrollment.status != EnrollmentStatus.ACTIVE:
            raise BusinessRuleError(f"Only active enrollments can be {status.value}; this one is {enrollment.status.value}")

        self._enrollments.update_status(enrollment_id=enrollment.enrollment_id, status=status)
        self._cache.invalidate(ENROLLMENTS)

    def drop_enrollment(self, enrollment_id: int) -> None:
        self._transition(enrollment_id, EnrollmentStatus.DROPPED)

    def complete_enrollment(self, enrollment_id: int) -> None:
        self._transition(enrollment_id, EnrollmentStatus.COMPLETED)

    def delete_enrollment(self, enrollment_id: int) -> None:
        if not self._enrollments.delete_enrollment(int(enrollment_id)):
            raise NotFoundError("Enrollment not found")
        self._cache.invalidate(ENROLLMENTS)
        logger.info("enrollment %s deleted", enrollment_id)
