from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.validators import FieldErrors, require_int_range
from ..common.web import current_role, current_user_id, error_response, form_data, roles_required, success, to_json
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..container import Container


def register(app: Flask, container: Container) -> None:
    def _ensure_teaches(course_id: int) -> None:
        if current_role() == Role.ADMIN:
            return
        if not container.course_service.is_lecturer_of(current_user_id(), course_id):
            raise AuthorizationError("You are not assigned to this course.")

    @app.route("/lecturer/courses/<int:course_id>/gradebook", methods=["GET"], endpoint="lecturer_gradebook")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_gradebook(course_id: int):
        try:
            _ensure_teaches(course_id)
            return jsonify(to_json(container.gradebook_service.course_gradebook(course_id)))
        except Exception as e:
            return error_response(e)

    @app.route("/lecturer/courses/<int:course_id>/categories", methods=["POST"], endpoint="lecturer_save_categories")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_save_categories(course_id: int):
        try:
            _ensure_teaches(course_id)
            payload = request.get_json(silent=True) or {}
            warning = container.gradebook_service.save_categories(course_id, payload.get("categories") or [])
            return success("Grade categories saved.", warning=warning)
        except Exception as e:
            return error_response(e, fallback="Could not save the grade categories.")

    @app.route("/lecturer/courses/<int:course_id>/grades", methods=["POST"], endpoint="lecturer_record_grade")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_record_grade(course_id: int):
        try:
            _ensure_teaches(course_id)
            data = form_data()
            errors = FieldErrors()
            student_id = errors.run(require_int_range, data.get("student_id"), "student_id", 1, 2**31 - 1)
            category_id = errors.run(require_int_range, data.get("category_id"), "category_id", 1, 2**31 - 1)
            errors.raise_if_any("Please correct the grade.")

            grade_id = container.gradebook_service.record_grade(
                student_id, course_id, category_id, data.get("percentage")
            )
            return success("Grade saved.", grade_id=grade_id)
        except Exception as e:
            return error_response(e, fallback="Could not save the grade.")

    @app.route("/lecturer/grades/<int:grade_id>/delete", methods=["POST"], endpoint="lecturer_delete_grade")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_delete_grade(grade_id: int):
        try:
            grade = container.gradebook_service.get_grade(grade_id)
            _ensure_teaches(grade.course_id)
            container.gradebook_service.delete_grade(grade_id)
            return success("Grade deleted.")
        except Exception as e:
            return error_response(e, fallback="Could not delete the grade.")

    @app.route(
        "/lecturer/courses/<int:course_id>/students/<int:student_id>/grades",
        methods=["GET"],
        endpoint="lecturer_student_grades",
    )
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_student_grades(course_id: int, student_id: int):
        try:
            _ensure_teaches(course_id)
            svc = container.gradebook_service
            return jsonify(
                {
                    "grades": to_json(svc.student_grades(student_id, course_id)),
                    "final": to_json(svc.final_grade(student_id, course_id)),
                }
            )
        except Exception as e:
            return error_response(e)

    @app.route("/student/grades", methods=["GET"], endpoint="student_grades")
    @roles_required(Role.STUDENT)
    def student_grades():
        try:
            return jsonify(to_json(container.gradebook_service.student_summary(current_user_id())))
        except Exception as e:
            return error_response(e)
