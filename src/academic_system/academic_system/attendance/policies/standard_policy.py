from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import CountDecision, CountingPolicy

ATTENDED = frozenset({AttendanceStatus.PRESENT, AttendanceStatus.LATE})


class StandardPolicy(CountingPolicy):
    """Present and late attend; absent and excused count against the student."""

    def decide(self, status: AttendanceStatus) -> CountDecision:
        return CountDecision(counted=True, attended=status in ATTENDED)
