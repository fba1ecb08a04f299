from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from ..core.enums import EnrollmentStatus
from .model import Section, SectionEnrollment


class EnrollmentRepository(Protocol):
    # Sections
    def get_section(self, section_id: int) -> Optional[Section]:
        raise NotImplementedError

    def list_sections(self, *, active_only: bool = True) -> Sequence[Section]:
        raise NotImplementedError

    # Enrollments
    def get_enrollment(self, enrollment_id: int) -> Optional[SectionEnrollment]:
        raise NotImplementedError

    def list_enrollments(
        self,
        *,
        student_id: Optional[int] = None,
        section_id: Optional[int] = None,
    ) -> Sequence[SectionEnrollment]:
        raise NotImplementedError

    def find_active_for_cohort(
        self,
        *,
        student_id: int,
        program_id: int,
        semester_id: int,
        academic_year_id: int,
    ) -> Optional[SectionEnrollment]:
        raise NotImplementedError

    def count_active_in_section(self, section_id: int) -> int:
        raise NotImplementedError

    def create_enrollment(
        self,
        *,
        student_id: int,
        section: Section,
        enrollment_date: date,
    ) -> int:
        raise NotImplementedError

    def update_status(self, *, enrollment_id: int, status: EnrollmentStatus) -> bool:
        raise NotImplementedError

    def delete_enrollment(self, enrollment_id: int) -> bool:
        raise NotImplementedError
