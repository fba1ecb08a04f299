from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import GradeCategory, StudentGrade
from .repository import GradeRepository

_GRADE_SELECT = """
    SELECT g.grade_id, g.student_id, g.course_id, g.category_id, g.percentage, gc.name AS category_name
    FROM student_grades g
    JOIN grade_categories gc ON gc.category_id = g.category_id
"""


def _row_to_category(r: Dict[str, Any]) -> GradeCategory:
    return GradeCategory(
        category_id=int(r["category_id"]),
        course_id=int(r["course_id"]),
        name=r["name"],
        percentage=float(r["percentage"]),
        is_default=as_bool(r.get("is_default", 0)),
    )


def _row_to_grade(r: Dict[str, Any]) -> StudentGrade:
    # DECIMAL columns arrive as Decimal.
    return StudentGrade(
        grade_id=int(r["grade_id"]),
        student_id=int(r["student_id"]),
        course_id=int(r["course_id"]),
        category_id=int(r["category_id"]),
        percentage=float(r["percentage"]),
        category_name=r.get("category_name"),
    )


class MySQLGradeRepository(GradeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_categories(self, course_id: int) -> Sequence[GradeCategory]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT category_id, course_id, name, percentage, is_default
                FROM grade_categories
                WHERE course_id=%s
                ORDER BY category_id
                """,
                (int(course_id),),
            )
            return [_row_to_category(r) for r in fetchall(cur)]

    def create_category(self, *, course_id: int, name: str, percentage: float, is_default: bool = False) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO grade_categories(course_id, name, percentage, is_default) VALUES(%s,%s,%s,%s)",
                (int(course_id), name, float(percentage), 1 if is_default else 0),
            )
            return int(cur.lastrowid)

    def update_category(self, *, category_id: int, name: str, percentage: float) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE grade_categories SET name=%s, percentage=%s WHERE category_id=%s",
                (name, float(percentage), int(category_id)),
            )
            return cur.rowcount > 0

    def delete_category(self, category_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM grade_categories WHERE category_id=%s", (int(category_id),))
            return cur.rowcount > 0

    def get_grade(self, grade_id: int) -> Optional[StudentGrade]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_GRADE_SELECT + " WHERE g.grade_id=%s", (int(grade_id),))
            r = fetchone(cur)
            return _row_to_grade(r) if r else None

    def list_grades(self, *, course_id: Optional[int] = None, student_id: Optional[int] = None) -> Sequence[StudentGrade]:
        clauses: list[str] = []
        params: list[object] = []
        if course_id is not None:
            clauses.append("g.course_id=%s")
            params.append(int(course_id))
        if student_id is not None:
            clauses.append("g.student_id=%s")
            params.append(int(student_id))

        sql = _GRADE_SELECT
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY g.student_id, g.category_id"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_grade(r) for r in fetchall(cur)]

    def upsert_grade(self, *, student_id: int, course_id: int, category_id: int, percentage: float) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO student_grades(student_id, course_id, category_id, percentage)
                VALUES(%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE percentage=VALUES(percentage), grade_id=LAST_INSERT_ID(grade_id)
                """,
                (int(student_id), int(course_id), int(category_id), float(percentage)),
            )
            return int(cur.lastrowid)

    def delete_grade(self, grade_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM student_grades WHERE grade_id=%s", (int(grade_id),))
            return cur.rowcount > 0
