from __future__ import annotations

from datetime import datetime

from ..common.datetime_utils import combine_local
from ..core.enums import SessionTimeStatus
from .model import AttendanceSession


def session_window(session: AttendanceSession) -> tuple[datetime, datetime]:
    return (
        combine_local(session.session_date, session.start_time),
        combine_local(session.session_date, session.end_time),
    )


def session_time_status(session: AttendanceSession, now: datetime) -> SessionTimeStatus:
    """upcoming -> active -> completed, both window ends inclusive for active."""

    start, end = session_window(session)
    if now < start:
        return SessionTimeStatus.UPCOMING
    if now <= end:
        return SessionTimeStatus.ACTIVE
    return SessionTimeStatus.COMPLETED


def is_open(session: AttendanceSession, now: datetime) -> bool:
    return session_time_status(session, now) == SessionTimeStatus.ACTIVE
