from __future__ import annotations

from dataclasses import replace
from datetime import date, time

import pytest

from src.academic_system.academic_system.attendance.model import AttendanceRecord, AttendanceSession
from src.academic_system.academic_system.container import wire_services
from src.academic_system.academic_system.core.enums import EnrollmentStatus, SessionMethod, SessionStatus
from src.academic_system.academic_system.courses.model import Course, CourseAssignment, LecturerAssignment
from src.academic_system.academic_system.enrollments.model import Section, SectionEnrollment
from src.academic_system.academic_system.grades.model import GradeCategory, StudentGrade


class FakeCourseRepo:
    def __init__(self):
        self._next_id = 1
        self.courses: dict[int, Course] = {}
        self.assignments: dict[int, CourseAssignment] = {}
        self.lecturer_assignments: dict[int, LecturerAssignment] = {}
        self.calls = 0

    def _new_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    def get_course(self, course_id):
        return self.courses.get(int(course_id))

    def get_course_by_code(self, course_code):
        return next((c for c in self.courses.values() if c.course_code == course_code), None)

    def list_courses(self):
        self.calls += 1
        return sorted(self.courses.values(), key=lambda c: c.course_code)

    def create_course(self, *, course_code, course_name, credits, department, description):
        cid = self._new_id()
        self.courses[cid] = Course(cid, course_code, course_name, credits, department, description)
        return cid

    def update_course(self, *, course_id, course_code, course_name, credits, department, description):
        if course_id not in self.courses:
            return False
        self.courses[course_id] = Course(course_id, course_code, course_name, credits, department, description)
        return True

    def delete_course(self, course_id):
        return self.courses.pop(int(course_id), None) is not None

    def get_assignment(self, assignment_id):
        return self.assignments.get(int(assignment_id))

    def list_assignments(self, *, course_id=None):
        self.calls += 1
        return [a for a in self.assignments.values() if course_id is None or a.course_id == course_id]

    def find_assignment(self, *, course_id, program_id, academic_year_id, semester_id, year_level):
        for a in self.assignments.values():
            if (a.course_id, a.program_id, a.academic_year_id, a.semester_id, a.year_level) == (
                course_id,
                program_id,
                academic_year_id,
                semester_id,
                year_level,
            ):
                return a
        return None

    def create_assignment(
        self, *, course_id, program_id, academic_year_id, semester_id, year_level, is_mandatory, max_students
    ):
        aid = self._new_id()
        self.assignments[aid] = CourseAssignment(
            assignment_id=aid,
            course_id=course_id,
            program_id=program_id,
            academic_year_id=academic_year_id,
            semester_id=semester_id,
            year_level=year_level,
            is_mandatory=is_mandatory,
            max_students=max_students,
            program_name=f"Program {program_id}",
            program_code=f"P{program_id}",
        )
        return aid

    def update_assignment(self, *, assignment_id, year_level, is_mandatory, max_students):
        current = self.assignments.get(assignment_id)
        if not current:
            return False
        self.assignments[assignment_id] = replace(
            current, year_level=year_level, is_mandatory=is_mandatory, max_students=max_students
        )
        return True

    def delete_assignment(self, assignment_id):
        return self.assignments.pop(int(assignment_id), None) is not None

    def list_lecturer_assignments(self, *, lecturer_id=None, course_id=None):
        return [
            la
            for la in self.lecturer_assignments.values()
            if (lecturer_id is None or la.lecturer_id == lecturer_id) and (course_id is None or la.course_id == course_id)
        ]

    def create_lecturer_assignment(
        self,
        *,
        lecturer_id,
        course_id,
        section_id,
        program_id,
        semester_id,
        academic_year_id,
        is_primary,
        teaching_hours_per_week,
        start_date,
        end_date,
    ):
        lid = self._new_id()
        self.lecturer_assignments[lid] = LecturerAssignment(
            lecturer_assignment_id=lid,
            lecturer_id=lecturer_id,
            course_id=course_id,
            section_id=section_id,
            program_id=program_id,
            semester_id=semester_id,
            academic_year_id=academic_year_id,
            is_primary=is_primary,
            teaching_hours_per_week=teaching_hours_per_week,
            start_date=start_date,
            end_date=end_date,
        )
        return lid

    def delete_lecturer_assignment(self, lecturer_assignment_id):
        return self.lecturer_assignments.pop(int(lecturer_assignment_id), None) is not None


class FakeEnrollmentRepo:
    def __init__(self):
        self._next_id = 1
        self.sections: dict[int, Section] = {}
        self.enrollments: dict[int, SectionEnrollment] = {}
        self.students: dict[int, tuple[str, str]] = {}

    def add_section(self, section: Section) -> None:
        self.sections[section.section_id] = section

    def get_section(self, section_id):
        return self.sections.get(int(section_id))

    def list_sections(self, *, active_only=True):
        return [s for s in self.sections.values() if s.is_active or not active_only]

    def get_enrollment(self, enrollment_id):
        return self.enrollments.get(int(enrollment_id))

    def list_enrollments(self, *, student_id=None, section_id=None):
        return [
            e
            for e in self.enrollments.values()
            if (student_id is None or e.student_id == student_id)
            and (section_id is None or e.section_id == section_id)
        ]

    def find_active_for_cohort(self, *, student_id, program_id, semester_id, academic_year_id):
        for e in self.enrollments.values():
            if (
                e.student_id == student_id
                and e.program_id == program_id
                and e.semester_id == semester_id
                and e.academic_year_id == academic_year_id
                and e.status == EnrollmentStatus.ACTIVE
            ):
                return e
        return None

    def count_active_in_section(self, section_id):
        return sum(1 for e in self.enrollments.values() if e.section_id == section_id and e.status == EnrollmentStatus.ACTIVE)

    def create_enrollment(self, *, student_id, section, enrollment_date):
        eid = self._next_id
        self._next_id += 1
        name, number = self.students.get(student_id, (f"Student {student_id}", f"S{student_id:04d}"))
        self.enrollments[eid] = SectionEnrollment(
            enrollment_id=eid,
            student_id=student_id,
            section_id=section.section_id,
            program_id=section.program_id,
            semester_id=section.semester_id,
            academic_year_id=section.academic_year_id,
            year_level=section.year_level,
            status=EnrollmentStatus.ACTIVE,
            enrollment_date=enrollment_date,
            student_name=name,
            student_number=number,
            section_code=section.section_code,
            program_name=section.program_name,
            program_code=section.program_code,
        )
        return eid

    def update_status(self, *, enrollment_id, status):
        current = self.enrollments.get(enrollment_id)
        if not current:
            return False
        self.enrollments[enrollment_id] = replace(current, status=status)
        return True

    def delete_enrollment(self, enrollment_id):
        return self.enrollments.pop(int(enrollment_id), None) is not None


class FakeGradeRepo:
    def __init__(self):
        self._next_id = 1
        self.categories: dict[int, GradeCategory] = {}
        self.grades: dict[int, StudentGrade] = {}

    def _new_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    def list_categories(self, course_id):
        return [c for c in self.categories.values() if c.course_id == course_id]

    def create_category(self, *, course_id, name, percentage, is_default=False):
        cid = self._new_id()
        self.categories[cid] = GradeCategory(cid, course_id, name, float(percentage), is_default)
        return cid

    def update_category(self, *, category_id, name, percentage):
        current = self.categories.get(category_id)
        if not current:
            return False
        self.categories[category_id] = replace(current, name=name, percentage=float(percentage))
        return True

    def delete_category(self, category_id):
        self.grades = {gid: g for gid, g in self.grades.items() if g.category_id != category_id}
        return self.categories.pop(category_id, None) is not None

    def get_grade(self, grade_id):
        return self.grades.get(int(grade_id))

    def list_grades(self, *, course_id=None, student_id=None):
        return [
            g
            for g in self.grades.values()
            if (course_id is None or g.course_id == course_id) and (student_id is None or g.student_id == student_id)
        ]

    def upsert_grade(self, *, student_id, course_id, category_id, percentage):
        for gid, g in self.grades.items():
            if (g.student_id, g.course_id, g.category_id) == (student_id, course_id, category_id):
                self.grades[gid] = replace(g, percentage=float(percentage))
                return gid
        gid = self._new_id()
        self.grades[gid] = StudentGrade(gid, student_id, course_id, category_id, float(percentage))
        return gid

    def delete_grade(self, grade_id):
        return self.grades.pop(int(grade_id), None) is not None


class FakeAttendanceRepo:
    def __init__(self):
        self._next_id = 1
        self.sessions: dict[int, AttendanceSession] = {}
        self.records: dict[int, AttendanceRecord] = {}

    def _new_id(self) -> int:
        nid = self._next_id
        self._next_id += 1
        return nid

    def get_session(self, session_id):
        return self.sessions.get(int(session_id))

    def list_sessions(self, *, course_id=None, lecturer_id=None):
        return [
            s
            for s in self.sessions.values()
            if (course_id is None or s.course_id == course_id) and (lecturer_id is None or s.lecturer_id == lecturer_id)
        ]

    def create_session(
        self,
        *,
        course_id,
        section_id,
        lecturer_id,
        session_name,
        session_date,
        start_time,
        end_time,
        attendance_method,
        status=SessionStatus.SCHEDULED,
    ):
        sid = self._new_id()
        self.sessions[sid] = AttendanceSession(
            session_id=sid,
            course_id=course_id,
            section_id=section_id,
            lecturer_id=lecturer_id,
            session_name=session_name,
            session_date=session_date,
            start_time=start_time,
            end_time=end_time,
            status=status,
            attendance_method=attendance_method,
        )
        return sid

    def update_session_status(self, *, session_id, status):
        current = self.sessions.get(session_id)
        if not current:
            return False
        self.sessions[session_id] = replace(current, status=status)
        return True

    def get_record(self, *, session_id, student_id):
        return next(
            (r for r in self.records.values() if r.session_id == session_id and r.student_id == student_id),
            None,
        )

    def list_records(self, *, session_ids=None, student_id=None):
        return [
            r
            for r in self.records.values()
            if (session_ids is None or r.session_id in session_ids) and (student_id is None or r.student_id == student_id)
        ]

    def create_record(self, *, session_id, student_id, status, method_used, marked_at):
        rid = self._new_id()
        self.records[rid] = AttendanceRecord(rid, session_id, student_id, status, marked_at, method_used)
        return rid

    def upsert_record(self, *, session_id, student_id, status, method_used, marked_at):
        existing = self.get_record(session_id=session_id, student_id=student_id)
        if existing:
            self.records[existing.record_id] = replace(existing, status=status, method_used=method_used, marked_at=marked_at)
            return existing.record_id
        return self.create_record(
            session_id=session_id, student_id=student_id, status=status, method_used=method_used, marked_at=marked_at
        )


def seed_campus(courses: FakeCourseRepo, enrollments: FakeEnrollmentRepo, grades: FakeGradeRepo) -> None:
    """Course CS201 (id 1) offered to program 1 year 2; lecturer 2 teaches section 1.

    Students 3 and 4 are in program 1 (sections CS2-A and CS2-B), student 5 in
    program 2 and so outside the course.
    """

    cid = courses.create_course(
        course_code="CS201", course_name="Data Structures", credits=3, department="CS", description=None
    )
    courses.create_assignment(
        course_id=cid,
        program_id=1,
        academic_year_id=1,
        semester_id=1,
        year_level=2,
        is_mandatory=True,
        max_students=60,
    )
    courses.create_lecturer_assignment(
        lecturer_id=2,
        course_id=cid,
        section_id=1,
        program_id=1,
        semester_id=1,
        academic_year_id=1,
        is_primary=True,
        teaching_hours_per_week=4,
        start_date=None,
        end_date=None,
    )

    enrollments.add_section(Section(1, "CS2-A", 1, 1, 1, 2, 30, True, "Computer Science", "CS"))
    enrollments.add_section(Section(2, "CS2-B", 1, 1, 1, 2, 30, True, "Computer Science", "CS"))
    enrollments.add_section(Section(3, "MA2-A", 2, 1, 1, 2, 30, True, "Mathematics", "MATH"))
    enrollments.students.update({3: ("Alice Nguyen", "S0003"), 4: ("Binh Tran", "S0004"), 5: ("Chi Le", "S0005")})
    for student_id, section_id in ((3, 1), (4, 2), (5, 3)):
        enrollments.create_enrollment(
            student_id=student_id, section=enrollments.sections[section_id], enrollment_date=date(2025, 9, 1)
        )

    for name, weight in (("Homework", 30), ("Midterm", 30), ("Final", 40)):
        grades.create_category(course_id=cid, name=name, percentage=weight)


@pytest.fixture
def repos():
    courses, enrollments, grades, attendance = FakeCourseRepo(), FakeEnrollmentRepo(), FakeGradeRepo(), FakeAttendanceRepo()
    seed_campus(courses, enrollments, grades)
    return {"courses": courses, "enrollments": enrollments, "grades": grades, "attendance": attendance}


@pytest.fixture
def settings():
    return {"CACHE_ENABLED": True}


@pytest.fixture
def container(repos, settings):
    return wire_services(
        courses_repo=repos["courses"],
        enrollments_repo=repos["enrollments"],
        grades_repo=repos["grades"],
        attendance_repo=repos["attendance"],
        settings=settings,
    )


@pytest.fixture
def morning_session(repos):
    """Session 1 of CS201 for section CS2-A, 2025-10-06 09:00-10:00."""

    sid = repos["attendance"].create_session(
        course_id=1,
        section_id=1,
        lecturer_id=2,
        session_name="Week 5 lecture",
        session_date=date(2025, 10, 6),
        start_time=time(9, 0),
        end_time=time(10, 0),
        attendance_method=SessionMethod.QR_CODE,
    )
    return repos["attendance"].sessions[sid]


@pytest.fixture
def app(container):
    from src.academic_system.academic_system.main import create_app

    return create_app(container, settings_module="config.testing")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(user_id: int, role: str) -> None:
        with client.session_transaction() as sess:
            sess["user_id"] = user_id
            sess["role"] = role

    return _login
