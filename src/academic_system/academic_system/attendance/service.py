from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.cache import EntityCache
from ..common.datetime_utils import now_local, parse_clock_time, parse_iso_date
from ..common.validators import FieldErrors, require_non_empty
from ..core.constants import QR_TOKEN_FUTURE_SKEW_MINUTES, QR_TOKEN_MAX_AGE_MINUTES
from ..core.enums import (
    AttendanceMethod,
    AttendanceStatus,
    ExcusedPolicy,
    SessionMethod,
    SessionStatus,
    SessionTimeStatus,
)
from ..core.exceptions import BusinessRuleError, InvalidTokenError, NotFoundError, ValidationError
from ..courses.service import CourseService
from ..enrollments.service import EnrollmentService
from .factory import CountingPolicyFactory
from .model import AttendanceRate, AttendanceRecord, AttendanceSession
from .rate import calculate_attendance_rate
from .repository import AttendanceRepository
from .session_status import session_time_status
from .tokens import encode_token, validate_token

logger = logging.getLogger(__name__)

ATTENDANCE_SESSIONS = "attendance_sessions"
ATTENDANCE_RECORDS = "attendance_records"


@dataclass(frozen=True)
class CourseRates:
    rates: list[AttendanceRate]
    loaded: bool = True


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        enrollments: EnrollmentService,
        courses: CourseService,
        *,
        policy_factory: Optional[CountingPolicyFactory] = None,
        excused_policy: ExcusedPolicy | str = ExcusedPolicy.STANDARD,
        token_max_age_minutes: int = QR_TOKEN_MAX_AGE_MINUTES,
        token_future_skew_minutes: int = QR_TOKEN_FUTURE_SKEW_MINUTES,
        require_token: bool = False,
        cache: Optional[EntityCache] = None,
    ):
        self._attendance = attendance
        self._enrollments = enrollments
        self._courses = courses
        self._policy = (policy_factory or CountingPolicyFactory()).for_policy(excused_policy)
        self._token_max_age = int(token_max_age_minutes)
        self._token_future_skew = int(token_future_skew_minutes)
        self._require_token = bool(require_token)
        self._cache = cache or EntityCache(enabled=False)

    # Sessions
    def get_session(self, session_id: int) -> AttendanceSession:
        session = self._attendance.get_session(int(session_id))
        if not session:
            raise NotFoundError("Attendance session not found")
        return session

    def list_sessions(self, course_id: int) -> Sequence[AttendanceSession]:
        return self._cache.get_or_load(
            ATTENDANCE_SESSIONS,
            ("course", int(course_id)),
            lambda: self._attendance.list_sessions(course_id=int(course_id)),
        )

    def create_session(self, *, lecturer_id: int, course_id: int, data: Mapping[str, Any]) -> int:
        self._courses.get_course(course_id)

        errors = FieldErrors()
        name = errors.run(require_non_empty, data.get("session_name"), "session_name")

        session_date = None
        try:
            session_date = parse_iso_date(str(data.get("session_date") or ""))
        except ValueError:
            errors.add("session_date", "Use the format YYYY-MM-DD")

        start_time = errors.run(_clock_field, data.get("start_time"), "start_time")
        end_time = errors.run(_clock_field, data.get("end_time"), "end_time")
        if start_time and end_time and end_time <= start_time:
            errors.add("end_time", "End time must be after the start time")

        method = SessionMethod.QR_CODE
        if data.get("attendance_method"):
            try:
                method = SessionMethod(str(data["attendance_method"]))
            except ValueError:
                errors.add("attendance_method", "Choose qr_code, facial_recognition or hybrid")

        section_id = None
        if data.get("section_id") not in (None, ""):
            try:
                section_id = int(data["section_id"])
            except (TypeError, ValueError):
                errors.add("section_id", "Must be a whole number")

        errors.raise_if_any("Please correct the session details.")

        session_id = self._attendance.create_session(
            course_id=int(course_id),
            section_id=section_id,
            lecturer_id=int(lecturer_id),
            session_name=name,
            session_date=session_date,
            start_time=start_time,
            end_time=end_time,
            attendance_method=method,
        )
        self._cache.invalidate(ATTENDANCE_SESSIONS)
        logger.info("attendance session %s created for course %s by lecturer %s", session_id, course_id, lecturer_id)
        return session_id

    def cancel_session(self, session_id: int) -> None:
        session = self.get_session(session_id)
        if session.status == SessionStatus.CANCELLED:
            raise BusinessRuleError("Session is already cancelled")
        if session.status == SessionStatus.COMPLETED:
            raise BusinessRuleError("Completed sessions cannot be cancelled")

        self._attendance.update_session_status(session_id=session.session_id, status=SessionStatus.CANCELLED)
        self._cache.invalidate(ATTENDANCE_SESSIONS)
        logger.info("attendance session %s cancelled", session_id)

    def session_status(self, session_id: int, now: Optional[datetime] = None) -> SessionTimeStatus:
        return session_time_status(self.get_session(session_id), now or now_local())

    def issue_token(self, session_id: int, now: Optional[datetime] = None) -> str:
        session = self.get_session(session_id)
        if session.status == SessionStatus.CANCELLED:
            raise BusinessRuleError("Session has been cancelled")
        return encode_token(session.session_id, now or now_local())

    # Marking
    def mark_attendance(
        self,
        session_id: int,
        student_id: int,
        token: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """Student self check-in, usually from a scanned QR code.

        Every refusal is a BusinessRuleError whose message is safe to show.
        """

        now = now or now_local()

        if token:
            validate_token(
                token,
                session_id=session_id,
                now=now,
                max_age_minutes=self._token_max_age,
                future_skew_minutes=self._token_future_skew,
            )
        elif self._require_token:
            raise InvalidTokenError("Scan the QR code shown by the lecturer to mark attendance.")

        session = self._attendance.get_session(int(session_id))
        if not session:
            raise BusinessRuleError("Attendance session not found")
        if session.status == SessionStatus.CANCELLED:
            raise BusinessRuleError("This session has been cancelled")

        time_status = session_time_status(session, now)
        if time_status == SessionTimeStatus.UPCOMING:
            raise BusinessRuleError("This session has not started yet")
        if time_status == SessionTimeStatus.COMPLETED:
            raise BusinessRuleError("This session has already ended")

        if session.section_id is None:
            raise BusinessRuleError("This session is not linked to a section")
        if not self._enrollments.has_active_enrollment_in_section(student_id, session.section_id):
            raise BusinessRuleError("You are not enrolled in the section for this session")

        if self._attendance.get_record(session_id=session.session_id, student_id=int(student_id)):
            raise BusinessRuleError("Attendance already marked for this session")

        record_id = self._attendance.create_record(
            session_id=session.session_id,
            student_id=int(student_id),
            status=AttendanceStatus.PRESENT,
            method_used=AttendanceMethod.QR_CODE,
            marked_at=now,
        )
        self._cache.invalidate(ATTENDANCE_RECORDS)
        logger.info("attendance marked: session=%s student=%s", session.session_id, student_id)
        return record_id

    def record_manual(
        self,
        session_id: int,
        student_id: int,
        status: AttendanceStatus | str,
        now: Optional[datetime] = None,
    ) -> int:
        """Lecturer override: set a student's status for a session, replacing any earlier mark."""

        try:
            status = AttendanceStatus(status)
        except ValueError:
            raise ValidationError("Unknown attendance status", {"status": ["Choose present, absent, late or excused"]})

        session = self.get_session(session_id)
        if session.status == SessionStatus.CANCELLED:
            raise BusinessRuleError("This session has been cancelled")
        if session.section_id is not None and not self._enrollments.has_active_enrollment_in_section(
            student_id, session.section_id
        ):
            raise BusinessRuleError("Student is not enrolled in the section for this session")

        record_id = self._attendance.upsert_record(
            session_id=session.session_id,
            student_id=int(student_id),
            status=status,
            method_used=AttendanceMethod.MANUAL,
            marked_at=now or now_local(),
        )
        self._cache.invalidate(ATTENDANCE_RECORDS)
        return record_id

    def session_roster(self, session_id: int) -> Sequence[AttendanceRecord]:
        session = self.get_session(session_id)
        return self._attendance.list_records(session_ids=[session.session_id])

    # Rates
    def course_records(self, course_id: int) -> Sequence[AttendanceRecord]:
        def load() -> Sequence[AttendanceRecord]:
            session_ids = [s.session_id for s in self.list_sessions(course_id)]
            return self._attendance.list_records(session_ids=session_ids)

        return self._cache.get_or_load(ATTENDANCE_RECORDS, ("course", int(course_id)), load)

    def student_rate(self, student_id: int, course_id: int) -> AttendanceRate:
        return calculate_attendance_rate(
            student_id=int(student_id),
            course_id=int(course_id),
            sessions=self.list_sessions(course_id),
            records=self.course_records(course_id),
            policy=self._policy,
        )

    def rates_for_students(self, course_id: int, student_ids: Sequence[int]) -> dict[int, AttendanceRate]:
        sessions = self.list_sessions(course_id)
        records = self.course_records(course_id)
        return {
            int(sid): calculate_attendance_rate(
                student_id=int(sid),
                course_id=int(course_id),
                sessions=sessions,
                records=records,
                policy=self._policy,
            )
            for sid in student_ids
        }

    def course_rates(self, course_id: int) -> CourseRates:
        resolved = self._enrollments.list_students_for_course(course_id)
        if not resolved.loaded:
            return CourseRates(rates=[], loaded=False)

        rates = self.rates_for_students(course_id, [s.student_id for s in resolved.students])
        return CourseRates(rates=[rates[s.student_id] for s in resolved.students])


def _clock_field(value: Any, field_name: str):
    try:
        return parse_clock_time(str(value or ""))
    except ValidationError:
        raise ValidationError(f"{field_name} is invalid", {field_name: ["Use the format HH:MM"]})
