from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import CountDecision, CountingPolicy
from .standard_policy import StandardPolicy


class ExcusedNeutralPolicy(CountingPolicy):
    """Excused sessions leave the denominator instead of counting as missed."""

    def decide(self, status: AttendanceStatus) -> CountDecision:
        if status == AttendanceStatus.EXCUSED:
            return CountDecision(counted=False, attended=False)
        return StandardPolicy().decide(status)
