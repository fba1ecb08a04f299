from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class CountDecision:
    counted: bool
    attended: bool


class CountingPolicy(ABC):
    """Strategy Pattern: decide how one attendance record counts toward a rate."""

    @abstractmethod
    def decide(self, status: AttendanceStatus) -> CountDecision:
        raise NotImplementedError
