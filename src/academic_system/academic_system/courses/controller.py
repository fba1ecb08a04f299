from __future__ import annotations

from flask import Flask, jsonify

from ..common.fetch import fetch_all
from ..common.web import (
    current_role,
    current_user_id,
    error_response,
    form_data,
    login_required,
    roles_required,
    success,
    to_json,
)
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/courses", methods=["GET"], endpoint="api_courses")
    @login_required
    def api_courses():
        return jsonify({"courses": to_json(container.course_service.list_courses())})

    @app.route("/api/courses/<int:course_id>", methods=["GET"], endpoint="api_course_detail")
    @login_required
    def api_course_detail(course_id: int):
        try:
            course = container.course_service.get_course(course_id)
            assignments = container.course_service.list_assignments(course_id)
            return jsonify({"course": to_json(course), "assignments": to_json(assignments)})
        except Exception as e:
            return error_response(e)

    # ===== ADMIN: COURSES =====

    @app.route("/admin/courses", methods=["POST"], endpoint="admin_course_create")
    @roles_required(Role.ADMIN)
    def admin_course_create():
        try:
            course_id = container.course_service.create_course(form_data())
            return success("Course created.", 201, course_id=course_id)
        except Exception as e:
            return error_response(e, fallback="Could not create the course.")

    @app.route("/admin/courses/<int:course_id>/update", methods=["POST"], endpoint="admin_course_update")
    @roles_required(Role.ADMIN)
    def admin_course_update(course_id: int):
        try:
            container.course_service.update_course(course_id, form_data())
            return success("Course updated.")
        except Exception as e:
            return error_response(e, fallback="Could not update the course.")

    @app.route("/admin/courses/<int:course_id>/delete", methods=["POST"], endpoint="admin_course_delete")
    @roles_required(Role.ADMIN)
    def admin_course_delete(course_id: int):
        try:
            container.course_service.delete_course(course_id)
            return success("Course deleted.")
        except Exception as e:
            return error_response(e, fallback="Could not delete the course.")

    # ===== ADMIN: COHORT OFFERINGS =====

    @app.route("/admin/courses/<int:course_id>/assignments", methods=["POST"], endpoint="admin_assignment_create")
    @roles_required(Role.ADMIN)
    def admin_assignment_create(course_id: int):
        try:
            assignment_id = container.course_service.create_assignment(course_id, form_data())
            return success("Course assigned to the cohort.", 201, assignment_id=assignment_id)
        except Exception as e:
            return error_response(e, fallback="Could not assign the course.")

    @app.route(
        "/admin/course-assignments/<int:assignment_id>/update",
        methods=["POST"],
        endpoint="admin_assignment_update",
    )
    @roles_required(Role.ADMIN)
    def admin_assignment_update(assignment_id: int):
        try:
            container.course_service.update_assignment(assignment_id, form_data())
            return success("Course assignment updated.")
        except Exception as e:
            return error_response(e, fallback="Could not update the course assignment.")

    @app.route(
        "/admin/course-assignments/<int:assignment_id>/delete",
        methods=["POST"],
        endpoint="admin_assignment_delete",
    )
    @roles_required(Role.ADMIN)
    def admin_assignment_delete(assignment_id: int):
        try:
            container.course_service.delete_assignment(assignment_id)
            return success("Course assignment removed.")
        except Exception as e:
            return error_response(e, fallback="Could not remove the course assignment.")

    # ===== ADMIN: LECTURERS =====

    @app.route("/admin/courses/<int:course_id>/lecturers", methods=["POST"], endpoint="admin_lecturer_assign")
    @roles_required(Role.ADMIN)
    def admin_lecturer_assign(course_id: int):
        try:
            lecturer_assignment_id = container.course_service.assign_lecturer(course_id, form_data())
            return success("Lecturer assigned.", 201, lecturer_assignment_id=lecturer_assignment_id)
        except Exception as e:
            return error_response(e, fallback="Could not assign the lecturer.")

    @app.route(
        "/admin/lecturer-assignments/<int:lecturer_assignment_id>/delete",
        methods=["POST"],
        endpoint="admin_lecturer_unassign",
    )
    @roles_required(Role.ADMIN)
    def admin_lecturer_unassign(lecturer_assignment_id: int):
        try:
            container.course_service.unassign_lecturer(lecturer_assignment_id)
            return success("Lecturer unassigned.")
        except Exception as e:
            return error_response(e, fallback="Could not unassign the lecturer.")

    # ===== LECTURER =====

    @app.route("/lecturer/courses", methods=["GET"], endpoint="lecturer_courses")
    @roles_required(Role.LECTURER)
    def lecturer_courses():
        return jsonify({"courses": to_json(container.course_service.courses_for_lecturer(current_user_id()))})

    @app.route("/lecturer/courses/<int:course_id>", methods=["GET"], endpoint="lecturer_course_detail")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_course_detail(course_id: int):
        """Course page data; each part loads independently and may come back missing."""

        try:
            if current_role() != Role.ADMIN and not container.course_service.is_lecturer_of(current_user_id(), course_id):
                raise AuthorizationError("You are not assigned to this course.")

            result = fetch_all(
                {
                    "course": lambda: container.course_service.get_course(course_id),
                    "assignments": lambda: container.course_service.list_assignments(course_id),
                    "students": lambda: container.enrollment_service.list_students_for_course(course_id),
                    "categories": lambda: container.gradebook_service.categories(course_id),
                    "sessions": lambda: container.attendance_service.list_sessions(course_id),
                }
            )
            if "course" not in result.data:
                return jsonify({"type": "error", "message": "Course could not be loaded."}), 404

            body = {key: to_json(value) for key, value in result.data.items()}
            body["missing"] = sorted(result.errors)
            return jsonify(body)
        except Exception as e:
            return error_response(e)
