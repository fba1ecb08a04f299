from datetime import datetime

import mysql.connector
import pytest
from mysql.connector import errorcode

from src.academic_system.academic_system.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.academic_system.academic_system.core.enums import AttendanceMethod, AttendanceStatus
from src.academic_system.academic_system.core.exceptions import BusinessRuleError


class FailingCursor:
    def __init__(self, error):
        self._error = error

    def execute(self, sql, params=None):
        raise self._error

    def close(self):
        pass


class FakeConnection:
    def __init__(self, error):
        self._error = error
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=True):
        return FailingCursor(self._error)

    def commit(self):
        raise AssertionError("nothing should be committed")

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnectionFactory:
    def __init__(self, error):
        self.conn = FakeConnection(error)

    def connect(self):
        return self.conn


def _create(repo):
    return repo.create_record(
        session_id=1,
        student_id=3,
        status=AttendanceStatus.PRESENT,
        method_used=AttendanceMethod.QR_CODE,
        marked_at=datetime(2025, 10, 6, 9, 30),
    )


def test_duplicate_check_in_becomes_business_rule_error():
    factory = FakeConnectionFactory(
        mysql.connector.IntegrityError(msg="Duplicate entry '1-3' for key 'uq_session_student'", errno=errorcode.ER_DUP_ENTRY)
    )

    with pytest.raises(BusinessRuleError, match="Attendance already marked for this session"):
        _create(MySQLAttendanceRepository(factory))

    assert factory.conn.rolled_back
    assert factory.conn.closed


def test_other_integrity_errors_propagate():
    factory = FakeConnectionFactory(
        mysql.connector.IntegrityError(msg="Cannot add or update a child row", errno=errorcode.ER_NO_REFERENCED_ROW_2)
    )

    with pytest.raises(mysql.connector.IntegrityError):
        _create(MySQLAttendanceRepository(factory))
