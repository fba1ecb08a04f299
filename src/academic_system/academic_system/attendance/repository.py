from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceMethod, AttendanceStatus, SessionMethod, SessionStatus
from .model import AttendanceRecord, AttendanceSession


class AttendanceRepository(Protocol):
    # Sessions
    def get_session(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def list_sessions(
        self,
        *,
        course_id: Optional[int] = None,
        lecturer_id: Optional[int] = None,
    ) -> Sequence[AttendanceSession]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_session_status(self, *, session_id: int, status: SessionStatus) -> bool:
        raise NotImplementedError

    # Records
    def get_record(self, *, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_records(
        self,
        *,
        session_ids: Optional[Sequence[int]] = None,
        student_id: Optional[int] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create_record(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        method_used: AttendanceMethod,
        marked_at: datetime,
    ) -> int:
        raise NotImplementedError

    def upsert_record(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        method_used: AttendanceMethod,
        marked_at: datetime,
    ) -> int:
        raise NotImplementedError
