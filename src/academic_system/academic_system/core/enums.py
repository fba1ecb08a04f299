from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for route access checks."""

    ADMIN = "admin"
    LECTURER = "lecturer"
    STUDENT = "student"


class EnrollmentStatus(str, Enum):
    """Lifecycle of a section enrollment."""

    ACTIVE = "active"
    DROPPED = "dropped"
    COMPLETED = "completed"


class AttendanceStatus(str, Enum):
    """Status stored on an attendance record."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class AttendanceMethod(str, Enum):
    QR_CODE = "qr_code"
    FACIAL_RECOGNITION = "facial_recognition"
    MANUAL = "manual"


class SessionMethod(str, Enum):
    """How a session accepts check-ins."""

    QR_CODE = "qr_code"
    FACIAL_RECOGNITION = "facial_recognition"
    HYBRID = "hybrid"


class SessionStatus(str, Enum):
    """Persisted administrative status of a session."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SessionTimeStatus(str, Enum):
    """Status derived from the wall clock against the session window."""

    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"


class GradeWeightPolicy(str, Enum):
    RAW = "raw"
    NORMALIZED = "normalized"


class ExcusedPolicy(str, Enum):
    STANDARD = "standard"
    EXCUSED_NEUTRAL = "excused_neutral"
