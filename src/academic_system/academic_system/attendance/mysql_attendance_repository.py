from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.enums import AttendanceMethod, AttendanceStatus, SessionMethod, SessionStatus
from ..core.exceptions import BusinessRuleError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time, optional_int
from .model import AttendanceRecord, AttendanceSession
from .repository import AttendanceRepository

_SESSION_SELECT = """
    SELECT
        a.session_id, a.course_id, a.section_id, a.lecturer_id, a.session_name, a.session_date,
        a.start_time, a.end_time, a.status, a.attendance_method,
        c.course_code, s.section_code
    FROM attendance_sessions a
    JOIN courses c ON c.course_id = a.course_id
    LEFT JOIN sections s ON s.section_id = a.section_id
"""

_RECORD_SELECT = """
    SELECT
        r.record_id, r.session_id, r.student_id, r.status, r.marked_at, r.method_used,
        u.full_name AS student_name, u.student_number
    FROM attendance_records r
    LEFT JOIN users u ON u.user_id = r.student_id
"""


def _row_to_session(r: Dict[str, Any]) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["session_id"]),
        course_id=int(r["course_id"]),
        section_id=optional_int(r.get("section_id")),
        lecturer_id=int(r["lecturer_id"]),
        session_name=r["session_name"],
        session_date=r["session_date"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        status=SessionStatus(r["status"]),
        attendance_method=SessionMethod(r["attendance_method"]),
        course_code=r.get("course_code"),
        section_code=r.get("section_code"),
    )


def _row_to_record(r: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        session_id=int(r["session_id"]),
        student_id=int(r["student_id"]),
        status=AttendanceStatus(r["status"]),
        marked_at=r.get("marked_at"),
        method_used=AttendanceMethod(r["method_used"]),
        student_name=r.get("student_name"),
        student_number=r.get("student_number"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_session(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SESSION_SELECT + " WHERE a.session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _row_to_session(r) if r else None

    def list_sessions(
        self,
        *,
        course_id: Optional[int] = None,
        lecturer_id: Optional[int] = None,
    ) -> Sequence[AttendanceSession]:
        clauses: list[str] = []
        params: list[object] = []
        if course_id is not None:
            clauses.append("a.course_id=%s")
            params.append(int(course_id))
        if lecturer_id is not None:
            clauses.append("a.lecturer_id=%s")
            params.append(int(lecturer_id))

        sql = _SESSION_SELECT
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY a.session_date, a.start_time"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_session(r) for r in fetchall(cur)]

    def create_session(
        self,
        *,
        course_id: int,
        section_id: Optional[int],
        lecturer_id: int,
        session_name: str,
        session_date: date,
        start_time: time,
        end_time: time,
        attendance_method: SessionMethod,
        status: SessionStatus = SessionStatus.SCHEDULED,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_sessions(
                    course_id, section_id, lecturer_id, session_name, session_date,
                    start_time, end_time, status, attendance_method
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(course_id),
                    section_id,
                    int(lecturer_id),
                    session_name,
                    session_date,
                    start_time,
                    end_time,
                    status.value,
                    attendance_method.value,
                ),
            )
            return int(cur.lastrowid)

    def update_session_status(self, *, session_id: int, status: SessionStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_sessions SET status=%s WHERE session_id=%s",
                (status.value, int(session_id)),
            )
            return cur.rowcount > 0

    def get_record(self, *, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _RECORD_SELECT + " WHERE r.session_id=%s AND r.student_id=%s",
                (int(session_id), int(student_id)),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def list_records(
        self,
        *,
        session_ids: Optional[Sequence[int]] = None,
        student_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        if session_ids is not None and not session_ids:
            return []

        clauses: list[str] = []
        params: list[object] = []
        if session_ids:
            clauses.append(f"r.session_id IN ({in_clause(session_ids)})")
            params.extend(int(s) for s in session_ids)
        if student_id is not None:
            clauses.append("r.student_id=%s")
            params.append(int(student_id))

        sql = _RECORD_SELECT
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY r.session_id, r.marked_at"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_row_to_record(r) for r in fetchall(cur)]

    def create_record(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        method_used: AttendanceMethod,
        marked_at: datetime,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(session_id, student_id, status, marked_at, method_used)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(session_id), int(student_id), status.value, marked_at, method_used.value),
                )
                return int(cur.lastrowid)
        except mysql.connector.IntegrityError as e:
            # uq_session_student: a concurrent check-in got there first.
            if e.errno != errorcode.ER_DUP_ENTRY:
                raise
            raise BusinessRuleError("Attendance already marked for this session") from e

    def upsert_record(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        method_used: AttendanceMethod,
        marked_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(session_id, student_id, status, marked_at, method_used)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status), marked_at=VALUES(marked_at), method_used=VALUES(method_used),
                    record_id=LAST_INSERT_ID(record_id)
                """,
                (int(session_id), int(student_id), status.value, marked_at, method_used.value),
            )
            return int(cur.lastrowid)
