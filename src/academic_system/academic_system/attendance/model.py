from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AttendanceMethod, AttendanceStatus, SessionMethod, SessionStatus


@dataclass(frozen=True)
class AttendanceSession:
    session_id: int
    course_id: int
    section_id: Optional[int]
    lecturer_id: int
    session_name: str
    session_date: date
    start_time: time
    end_time: time
    status: SessionStatus = SessionStatus.SCHEDULED
    attendance_method: SessionMethod = SessionMethod.QR_CODE
    course_code: Optional[str] = None
    section_code: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRecord:
    record_id: int
    session_id: int
    student_id: int
    status: AttendanceStatus
    marked_at: Optional[datetime] = None
    method_used: AttendanceMethod = AttendanceMethod.MANUAL
    student_name: Optional[str] = None
    student_number: Optional[str] = None


@dataclass(frozen=True)
class AttendanceRate:
    """Share of a student's recorded sessions that count as attended.

    ``counted`` is the number of sessions in the denominator; sessions with
    no record for the student are never counted.
    """

    student_id: int
    course_id: int
    attended: int
    counted: int
    rate: float
