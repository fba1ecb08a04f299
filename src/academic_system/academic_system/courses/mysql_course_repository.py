from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone, optional_int
from .model import Course, CourseAssignment, LecturerAssignment
from .repository import CourseRepository

_ASSIGNMENT_SELECT = """
    SELECT
        ca.assignment_id, ca.course_id, ca.program_id, ca.academic_year_id, ca.semester_id,
        ca.year_level, ca.is_mandatory, ca.max_students,
        p.program_name, p.program_code, s.semester_name, ay.year_name AS academic_year_name
    FROM course_assignments ca
    LEFT JOIN programs p ON p.program_id = ca.program_id
    LEFT JOIN semesters s ON s.semester_id = ca.semester_id
    LEFT JOIN academic_years ay ON ay.academic_year_id = ca.academic_year_id
"""

_LECTURER_SELECT = """
    SELECT
        la.lecturer_assignment_id, la.lecturer_id, la.course_id, la.section_id, la.program_id,
        la.semester_id, la.academic_year_id, la.is_primary, la.teaching_hours_per_week,
        la.start_date, la.end_date, p.program_name, p.program_code
    FROM lecturer_assignments la
    LEFT JOIN programs p ON p.program_id = la.program_id
"""


def _row_to_course(r: Dict[str, Any]) -> Course:
    return Course(
        course_id=int(r["course_id"]),
        course_code=r["course_code"],
        course_name=r["course_name"],
        credits=int(r.get("credits") or 0),
        department=r.get("department"),
        description=r.get("description"),
    )


def _row_to_assignment(r: Dict[str, Any]) -> CourseAssignment:
    return CourseAssignment(
        assignment_id=int(r["assignment_id"]),
        course_id=int(r["course_id"]),
        program_id=int(r["program_id"]),
        academic_year_id=int(r["academic_year_id"]),
        semester_id=int(r["semester_id"]),
        year_level=optional_int(r.get("year_level")),
        is_mandatory=as_bool(r.get("is_mandatory", 1)),
        max_students=optional_int(r.get("max_students")),
        program_name=r.get("program_name"),
        program_code=r.get("program_code"),
        semester_name=r.get("semester_name"),
        academic_year_name=r.get("academic_year_name"),
    )


def _row_to_lecturer_assignment(r: Dict[str, Any]) -> LecturerAssignment:
    return LecturerAssignment(
        lecturer_assignment_id=int(r["lecturer_assignment_id"]),
        lecturer_id=int(r["lecturer_id"]),
        course_id=int(r["course_id"]),
        section_id=optional_int(r.get("section_id")),
        program_id=int(r["program_id"]),
        semester_id=int(r["semester_id"]),
        academic_year_id=int(r["academic_year_id"]),
        is_primary=as_bool(r.get("is_primary", 1)),
        teaching_hours_per_week=optional_int(r.get("teaching_hours_per_week")),
        start_date=r.get("start_date"),
        end_date=r.get("end_date"),
        program_name=r.get("program_name"),
        program_code=r.get("program_code"),
    )


class MySQLCourseRepository(CourseRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # Courses
    def get_course(self, course_id: int) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT course_id, course_code, course_name, credits, department, description FROM courses WHERE course_id=%s",
                (int(course_id),),
            )
            r = fetchone(cur)
            return _row_to_course(r) if r else None

    def get_course_by_code(self, course_code: str) -> Optional[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT course_id, course_code, course_name, credits, department, description FROM courses WHERE course_code=%s",
                (course_code,),
            )
            r = fetchone(cur)
            return _row_to_course(r) if r else None

    def list_courses(self) -> Sequence[Course]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT course_id, course_code, course_name, credits, department, description FROM courses ORDER BY course_code"
            )
            return [_row_to_course(r) for r in fetchall(cur)]

    def create_course(
        self,
        *,
        course_code: str,
        course_name: str,
        credits: int,
        department: Optional[str],
        description: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO courses(course_code, course_name, credits, department, description)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (course_code, course_name, int(credits), department, description),
            )
            return int(cur.lastrowid)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE courses
                SET course_code=%s, course_name=%s, credits=%s, department=%s, description=%s
                WHERE course_id=%s
                """,
                (course_code, course_name, int(credits), department, description, int(course_id)),
            )
            return cur.rowcount > 0

    def delete_course(self, course_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM courses WHERE course_id=%s", (int(course_id),))
            return cur.rowcount > 0

    # Course assignments
    def get_assignment(self, assignment_id: int) -> Optional[CourseAssignment]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_ASSIGNMENT_SELECT + " WHERE ca.assignment_id=%s", (int(assignment_id),))
            r = fetchone(cur)
            return _row_to_assignment(r) if r else None

    def list_assignments(self, *, course_id: Optional[int] = None) -> Sequence[CourseAssignment]:
        sql = _ASSIGNMENT_SELECT
        params: list[object] = []
        if course_id is not None:
            sql += " WHERE ca.course_id=%s"
            params.append(int(course_id))
        sql += " ORDER BY ca.course_id, ca.program_id, ca.year_level"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_assignment(r) for r in fetchall(cur)]

    def find_assignment(
        self,
        *,
        course_id: int,
        program_id: int,
        academic_year_id: int,
        semester_id: int,
        year_level: Optional[int],
    ) -> Optional[CourseAssignment]:
        # NULL-safe equality so "all years" offerings are matched too.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _ASSIGNMENT_SELECT
                + """
                WHERE ca.course_id=%s AND ca.program_id=%s AND ca.academic_year_id=%s
                  AND ca.semester_id=%s AND ca.year_level <=> %s
                """,
                (int(course_id), int(program_id), int(academic_year_id), int(semester_id), year_level),
            )
            r = fetchone(cur)
            return _row_to_assignment(r) if r else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO course_assignments(
                    course_id, program_id, academic_year_id, semester_id, year_level, is_mandatory, max_students
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(course_id),
                    int(program_id),
                    int(academic_year_id),
                    int(semester_id),
                    year_level,
                    1 if is_mandatory else 0,
                    max_students,
                ),
            )
            return int(cur.lastrowid)

    def update_assignment(
        self,
        *,
        assignment_id: int,
        year_level: Optional[int],
        is_mandatory: bool,
        max_students: Optional[int],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE course_assignments
                SET year_level=%s, is_mandatory=%s, max_students=%s
                WHERE assignment_id=%s
                """,
                (year_level, 1 if is_mandatory else 0, max_students, int(assignment_id)),
            )
            return cur.rowcount > 0

    def delete_assignment(self, assignment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM course_assignments WHERE assignment_id=%s", (int(assignment_id),))
            return cur.rowcount > 0

    # Lecturer assignments
    def list_lecturer_assignments(
        self,
        *,
        lecturer_id: Optional[int] = None,
        course_id: Optional[int] = None,
    ) -> Sequence[LecturerAssignment]:
        clauses: list[str] = []
        params: list[object] = []
        if lecturer_id is not None:
            clauses.append("la.lecturer_id=%s")
            params.append(int(lecturer_id))
        if course_id is not None:
            clauses.append("la.course_id=%s")
            params.append(int(course_id))

        sql = _LECTURER_SELECT
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY la.course_id, la.section_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_lecturer_assignment(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO lecturer_assignments(
                    lecturer_id, course_id, section_id, program_id, semester_id, academic_year_id,
                    is_primary, teaching_hours_per_week, start_date, end_date
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(lecturer_id),
                    int(course_id),
                    section_id,
                    int(program_id),
                    int(semester_id),
                    int(academic_year_id),
                    1 if is_primary else 0,
                    teaching_hours_per_week,
                    start_date,
                    end_date,
                ),
            )
            return int(cur.lastrowid)

    def delete_lecturer_assignment(self, lecturer_assignment_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM lecturer_assignments WHERE lecturer_assignment_id=%s",
                (int(lecturer_assignment_id),),
            )
            return cur.rowcount > 0
