from dataclasses import replace
from datetime import datetime, time

import pytest

from src.academic_system.academic_system.attendance.session_status import is_open, session_time_status, session_window
from src.academic_system.academic_system.core.enums import SessionTimeStatus


@pytest.mark.parametrize(
    "clock, expected",
    [
        ((8, 59, 59), SessionTimeStatus.UPCOMING),
        ((9, 0, 0), SessionTimeStatus.ACTIVE),
        ((9, 30, 0), SessionTimeStatus.ACTIVE),
        ((10, 0, 0), SessionTimeStatus.ACTIVE),
        ((10, 0, 1), SessionTimeStatus.COMPLETED),
        ((11, 0, 0), SessionTimeStatus.COMPLETED),
    ],
)
def test_time_status_follows_window(morning_session, clock, expected):
    now = datetime(2025, 10, 6, *clock)

    assert session_time_status(morning_session, now) == expected
    assert is_open(morning_session, now) is (expected == SessionTimeStatus.ACTIVE)


def test_other_days_are_outside_window(morning_session):
    assert session_time_status(morning_session, datetime(2025, 10, 5, 9, 30)) == SessionTimeStatus.UPCOMING
    assert session_time_status(morning_session, datetime(2025, 10, 7, 9, 30)) == SessionTimeStatus.COMPLETED


def test_window_combines_date_and_times(morning_session):
    start, end = session_window(replace(morning_session, end_time=time(11, 15)))

    assert start == datetime(2025, 10, 6, 9, 0)
    assert end == datetime(2025, 10, 6, 11, 15)
