from __future__ import annotations

from flask import Flask, jsonify

from ..common.datetime_utils import parse_iso_date
from ..common.validators import FieldErrors, require_int_range
from ..common.web import current_user_id, error_response, form_data, roles_required, success, to_json
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _resolved_json(resolved):
        return {"students": to_json(resolved.students), "loaded": resolved.loaded}

    @app.route("/api/sections", methods=["GET"], endpoint="api_sections")
    @roles_required(Role.ADMIN, Role.LECTURER)
    def api_sections():
        return jsonify({"sections": to_json(container.enrollment_service.list_sections())})

    @app.route("/admin/enrollments", methods=["POST"], endpoint="admin_enroll")
    @roles_required(Role.ADMIN)
    def admin_enroll():
        try:
            data = form_data()
            errors = FieldErrors()
            student_id = errors.run(require_int_range, data.get("student_id"), "student_id", 1, 2**31 - 1)
            section_id = errors.run(require_int_range, data.get("section_id"), "section_id", 1, 2**31 - 1)
            enrollment_date = None
            if data.get("enrollment_date"):
                try:
                    enrollment_date = parse_iso_date(str(data["enrollment_date"]))
                except ValueError:
                    errors.add("enrollment_date", "Use the format YYYY-MM-DD")
            errors.raise_if_any("Please correct the highlighted fields.")

            enrollment_id = container.enrollment_service.enroll_student(student_id, section_id, enrollment_date)
            return success("Student enrolled.", 201, enrollment_id=enrollment_id)
        except Exception as e:
            return error_response(e, fallback="Could not enroll the student.")

    @app.route("/admin/enrollments/<int:enrollment_id>/drop", methods=["POST"], endpoint="admin_enrollment_drop")
    @roles_required(Role.ADMIN)
    def admin_enrollment_drop(enrollment_id: int):
        try:
            container.enrollment_service.drop_enrollment(enrollment_id)
            return success("Enrollment dropped.")
        except Exception as e:
            return error_response(e, fallback="Could not drop the enrollment.")

    @app.route(
        "/admin/enrollments/<int:enrollment_id>/complete",
        methods=["POST"],
        endpoint="admin_enrollment_complete",
    )
    @roles_required(Role.ADMIN)
    def admin_enrollment_complete(enrollment_id: int):
        try:
            container.enrollment_service.complete_enrollment(enrollment_id)
            return success("Enrollment completed.")
        except Exception as e:
            return error_response(e, fallback="Could not complete the enrollment.")

    @app.route("/admin/enrollments/<int:enrollment_id>/delete", methods=["POST"], endpoint="admin_enrollment_delete")
    @roles_required(Role.ADMIN)
    def admin_enrollment_delete(enrollment_id: int):
        try:
            container.enrollment_service.delete_enrollment(enrollment_id)
            return success("Enrollment deleted.")
        except Exception as e:
            return error_response(e, fallback="Could not delete the enrollment.")

    @app.route("/admin/courses/<int:course_id>/students", methods=["GET"], endpoint="admin_course_students")
    @roles_required(Role.ADMIN)
    def admin_course_students(course_id: int):
        return jsonify(_resolved_json(container.enrollment_service.list_students_for_course(course_id)))

    @app.route("/lecturer/courses/<int:course_id>/students", methods=["GET"], endpoint="lecturer_course_students")
    @roles_required(Role.LECTURER)
    def lecturer_course_students(course_id: int):
        resolved = container.enrollment_service.list_students_for_lecturer(current_user_id(), course_id)
        return jsonify(_resolved_json(resolved))

    @app.route("/student/courses", methods=["GET"], endpoint="student_courses")
    @roles_required(Role.STUDENT)
    def student_courses():
        student_id = current_user_id()
        return jsonify(
            {
                "courses": to_json(container.enrollment_service.courses_for_student(student_id)),
                "enrollments": to_json(container.enrollment_service.list_for_student(student_id)),
            }
        )
