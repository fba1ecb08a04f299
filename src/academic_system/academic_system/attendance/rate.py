from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .model import AttendanceRate, AttendanceRecord, AttendanceSession
from .policies.base import CountingPolicy
from .policies.standard_policy import StandardPolicy


def calculate_attendance_rate(
    *,
    student_id: int,
    course_id: int,
    sessions: Sequence[AttendanceSession],
    records: Iterable[AttendanceRecord],
    policy: Optional[CountingPolicy] = None,
) -> AttendanceRate:
    """Attended / counted * 100 over the course sessions holding a record for the student.

    Sessions with no record are left out entirely; no counted sessions gives 0.
    """

    policy = policy or StandardPolicy()

    own: dict[int, AttendanceRecord] = {}
    for r in records:
        if r.student_id == student_id:
            own.setdefault(r.session_id, r)

    attended = 0
    counted = 0
    for s in sessions:
        record = own.get(s.session_id)
        if record is None:
            continue
        decision = policy.decide(record.status)
        if decision.counted:
            counted += 1
            if decision.attended:
                attended += 1

    rate = round(attended * 100.0 / counted, 2) if counted else 0.0
    return AttendanceRate(student_id=student_id, course_id=course_id, attended=attended, counted=counted, rate=rate)
