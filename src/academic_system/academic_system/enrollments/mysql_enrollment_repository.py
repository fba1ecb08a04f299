from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..core.enums import EnrollmentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, optional_int
from .model import Section, SectionEnrollment
from .repository import EnrollmentRepository

_SECTION_SELECT = """
    SELECT
        s.section_id, s.section_code, s.program_id, s.academic_year_id, s.semester_id,
        s.year_level, s.max_capacity, s.is_active, p.program_name, p.program_code
    FROM sections s
    LEFT JOIN programs p ON p.program_id = s.program_id
"""

_ENROLLMENT_SELECT = """
    SELECT
        se.enrollment_id, se.student_id, se.section_id, se.program_id, se.semester_id,
        se.academic_year_id, se.year_level, se.status, se.enrollment_date,
        u.full_name AS student_name, u.student_number,
        s.section_code, p.program_name, p.program_code
    FROM section_enrollments se
    JOIN users u ON u.user_id = se.student_id
    JOIN sections s ON s.section_id = se.section_id
    LEFT JOIN programs p ON p.program_id = se.program_id
"""


def _row_to_section(r: Dict[str, Any]) -> Section:
    return Section(
        section_id=int(r["section_id"]),
        section_code=r["section_code"],
        program_id=int(r["program_id"]),
        academic_year_id=int(r["academic_year_id"]),
        semester_id=int(r["semester_id"]),
        year_level=int(r["year_level"]),
        max_capacity=optional_int(r.get("max_capacity")),
        is_active=as_bool(r.get("is_active", 1)),
        program_name=r.get("program_name"),
        program_code=r.get("program_code"),
    )


def _row_to_enrollment(r: Dict[str, Any]) -> SectionEnrollment:
    return SectionEnrollment(
        enrollment_id=int(r["enrollment_id"]),
        student_id=int(r["student_id"]),
        section_id=int(r["section_id"]),
        program_id=int(r["program_id"]),
        semester_id=int(r["semester_id"]),
        academic_year_id=int(r["academic_year_id"]),
        year_level=int(r["year_level"]),
        status=EnrollmentStatus(r["status"]),
        enrollment_date=r.get("enrollment_date"),
        student_name=r.get("student_name"),
        student_number=r.get("student_number"),
        section_code=r.get("section_code"),
        program_name=r.get("program_name"),
        program_code=r.get("program_code"),
    )


class MySQLEnrollmentRepository(EnrollmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_section(self, section_id: int) -> Optional[Section]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SECTION_SELECT + " WHERE s.section_id=%s", (int(section_id),))
            r = fetchone(cur)
            return _row_to_section(r) if r else None

    def list_sections(self, *, active_only: bool = True) -> Sequence[Section]:
        sql = _SECTION_SELECT
        if active_only:
            sql += " WHERE s.is_active=1"
        sql += " ORDER BY s.section_code"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql)
            return [_row_to_section(r) for r in fetchall(cur)]

    def get_enrollment(self, enrollment_id: int) -> Optional[SectionEnrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_ENROLLMENT_SELECT + " WHERE se.enrollment_id=%s", (int(enrollment_id),))
            r = fetchone(cur)
            return _row_to_enrollment(r) if r else None

    def list_enrollments(
        self,
        *,
        student_id: Optional[int] = None,
        section_id: Optional[int] = None,
    ) -> Sequence[SectionEnrollment]:
        clauses: list[str] = []
        params: list[object] = []
        if student_id is not None:
            clauses.append("se.student_id=%s")
            params.append(int(student_id))
        if section_id is not None:
            clauses.append("se.section_id=%s")
            params.append(int(section_id))

        sql = _ENROLLMENT_SELECT
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY se.enrollment_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_enrollment(r) for r in fetchall(cur)]

    def find_active_for_cohort(
        self,
        *,
        student_id: int,
        program_id: int,
        semester_id: int,
        academic_year_id: int,
    ) -> Optional[SectionEnrollment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _ENROLLMENT_SELECT
                + """
                WHERE se.student_id=%s AND se.program_id=%s AND se.semester_id=%s
                  AND se.academic_year_id=%s AND se.status=%s
                LIMIT 1
                """,
                (
                    int(student_id),
                    int(program_id),
                    int(semester_id),
                    int(academic_year_id),
                    EnrollmentStatus.ACTIVE.value,
                ),
            )
            r = fetchone(cur)
            return _row_to_enrollment(r) if r else None

    def count_active_in_section(self, section_id: int) -> int:
        with db_cursor(self._conn_factory, dictionary=False) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) FROM section_enrollments WHERE section_id=%s AND status=%s",
                (int(section_id), EnrollmentStatus.ACTIVE.value),
            )
            row = cur.fetchone()
            return int(row[0]) if row else 0

    def create_enrollment(self, *, student_id: int, section: Section, enrollment_date: date) -> int:
        # Cohort columns are copied from the section so the resolver never needs a join.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO section_enrollments(
                    student_id, section_id, program_id, semester_id, academic_year_id,
                    year_level, status, enrollment_date
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(student_id),
                    section.section_id,
                    section.program_id,
                    section.semester_id,
                    section.academic_year_id,
                    section.year_level,
                    EnrollmentStatus.ACTIVE.value,
                    enrollment_date,
                ),
            )
            return int(cur.lastrowid)

    def update_status(self, *, enrollment_id: int, status: EnrollmentStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE section_enrollments SET status=%s WHERE enrollment_id=%s",
                (status.value, int(enrollment_id)),
            )
            return cur.rowcount > 0

    def delete_enrollment(self, enrollment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM section_enrollments WHERE enrollment_id=%s", (int(enrollment_id),))
            return cur.rowcount > 0
