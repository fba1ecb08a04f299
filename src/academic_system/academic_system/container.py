from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .attendance.factory import CountingPolicyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .common.cache import EntityCache
from .core.constants import DEFAULT_PASSING_THRESHOLD, QR_TOKEN_FUTURE_SKEW_MINUTES, QR_TOKEN_MAX_AGE_MINUTES
from .courses.mysql_course_repository import MySQLCourseRepository
from .courses.repository import CourseRepository
from .courses.service import CourseService
from .database.connection import DBConfig, DatabaseConnection
from .enrollments.mysql_enrollment_repository import MySQLEnrollmentRepository
from .enrollments.repository import EnrollmentRepository
from .enrollments.service import EnrollmentService
from .grades.calculator.factory import calculator_for
from .grades.mysql_grade_repository import MySQLGradeRepository
from .grades.repository import GradeRepository
from .grades.service import GradebookService
from .reports.service import CourseReportService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    cache: EntityCache

    courses_repo: CourseRepository
    enrollments_repo: EnrollmentRepository
    grades_repo: GradeRepository
    attendance_repo: AttendanceRepository

    course_service: CourseService
    enrollment_service: EnrollmentService
    gradebook_service: GradebookService
    attendance_service: AttendanceService
    report_service: CourseReportService


def wire_services(
    *,
    courses_repo: CourseRepository,
    enrollments_repo: EnrollmentRepository,
    grades_repo: GradeRepository,
    attendance_repo: AttendanceRepository,
    settings: Optional[Mapping[str, Any]] = None,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build the services on top of any repository implementations."""

    settings = settings or {}
    cache = EntityCache(enabled=bool(settings.get("CACHE_ENABLED", True)))

    course_service = CourseService(courses_repo, cache=cache)
    enrollment_service = EnrollmentService(enrollments_repo, course_service, cache=cache)
    gradebook_service = GradebookService(
        grades_repo,
        enrollment_service,
        course_service,
        calculator=calculator_for(settings.get("GRADE_WEIGHT_POLICY", "raw")),
        passing_threshold=float(settings.get("PASSING_THRESHOLD", DEFAULT_PASSING_THRESHOLD)),
        cache=cache,
    )
    attendance_service = AttendanceService(
        attendance_repo,
        enrollment_service,
        course_service,
        policy_factory=CountingPolicyFactory(),
        excused_policy=settings.get("EXCUSED_POLICY", "standard"),
        token_max_age_minutes=int(settings.get("QR_TOKEN_MAX_AGE_MINUTES", QR_TOKEN_MAX_AGE_MINUTES)),
        token_future_skew_minutes=int(settings.get("QR_TOKEN_FUTURE_SKEW_MINUTES", QR_TOKEN_FUTURE_SKEW_MINUTES)),
        require_token=bool(settings.get("REQUIRE_QR_TOKEN", False)),
        cache=cache,
    )
    report_service = CourseReportService(course_service, enrollment_service, gradebook_service, attendance_service)

    return Container(
        conn=conn,
        cache=cache,
        courses_repo=courses_repo,
        enrollments_repo=enrollments_repo,
        grades_repo=grades_repo,
        attendance_repo=attendance_repo,
        course_service=course_service,
        enrollment_service=enrollment_service,
        gradebook_service=gradebook_service,
        attendance_service=attendance_service,
        report_service=report_service,
    )


def build_container(*, db_config: Mapping[str, Any], settings: Optional[Mapping[str, Any]] = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire_services(
        courses_repo=MySQLCourseRepository(conn),
        enrollments_repo=MySQLEnrollmentRepository(conn),
        grades_repo=MySQLGradeRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        settings=settings,
        conn=conn,
    )
