from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..attendance.service import AttendanceService
from ..common.fetch import fetch_all
from ..courses.service import CourseService
from ..enrollments.service import EnrollmentService
from ..grades.letters import grade_distribution, is_passing
from ..grades.service import GradebookService

logger = logging.getLogger(__name__)

CSV_FIELDS = [
    "student_number",
    "student_name",
    "program",
    "sections",
    "final_percentage",
    "letter",
    "passing",
    "attendance_rate",
    "sessions_attended",
    "sessions_counted",
]


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: dict
    missing: list[str] = field(default_factory=list)


class CourseReportService:
    def __init__(
        self,
        courses: CourseService,
        enrollments: EnrollmentService,
        gradebook: GradebookService,
        attendance: AttendanceService,
    ):
        self._courses = courses
        self._enrollments = enrollments
        self._gradebook = gradebook
        self._attendance = attendance

    def build_course_report(self, course_id: int) -> ReportData:
        """One row per student taking the course, plus class-level figures.

        Grades and attendance load side by side; if one of them fails the
        report is still built and its columns are left empty (see ``missing``).
        """

        course = self._courses.get_course(course_id)
        resolved = self._enrollments.list_students_for_course(course_id)
        if not resolved.loaded:
            return ReportData(rows=[], summary=self._summary(course.course_code, [], [], []), missing=["students"])

        students = resolved.students
        student_ids = [s.student_id for s in students]
        result = fetch_all(
            {
                "grades": lambda: self._gradebook.final_grades_for_course(course_id, student_ids),
                "attendance": lambda: self._attendance.rates_for_students(course_id, student_ids),
            }
        )
        finals = result.get("grades", {})
        rates = result.get("attendance", {})

        rows: list[dict] = []
        for s in students:
            final = finals.get(s.student_id)
            rate = rates.get(s.student_id)
            rows.append(
                {
                    "student_id": s.student_id,
                    "student_number": s.student_number or "",
                    "student_name": s.student_name or "",
                    "program": s.program_code or s.program or "-",
                    "sections": ", ".join(s.sections),
                    "final_percentage": final.percentage if final else None,
                    "letter": final.letter if final else None,
                    "passing": is_passing(final.percentage, self._gradebook.passing_threshold) if final else None,
                    "attendance_rate": rate.rate if rate else None,
                    "sessions_attended": rate.attended if rate else None,
                    "sessions_counted": rate.counted if rate else None,
                }
            )

        rows.sort(key=lambda r: (r["student_name"], r["student_number"]))
        summary = self._summary(
            course.course_code,
            rows,
            [r["final_percentage"] for r in rows if r["final_percentage"] is not None],
            [r["attendance_rate"] for r in rows if r["attendance_rate"] is not None],
        )
        return ReportData(rows=rows, summary=summary, missing=sorted(result.errors))

    def _summary(self, course_code: str, rows: list[dict], percentages: list[float], rates: list[float]) -> dict:
        return {
            "course_code": course_code,
            "students": len(rows),
            "class_average": _mean(percentages),
            "pass_count": sum(1 for p in percentages if is_passing(p, self._gradebook.passing_threshold)),
            "grade_distribution": grade_distribution(percentages),
            "average_attendance": _mean(rates),
        }


def _mean(values: list[float]) -> Optional[float]:
    if not values:
        return None
    return round(sum(values) / len(values), 2)
