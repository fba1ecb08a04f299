from __future__ import annotations

import io
import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

import qrcode
from flask import Flask, jsonify, request, send_file, url_for
from PIL import Image, UnidentifiedImageError

from ..common.datetime_utils import now_local
from ..common.validators import FieldErrors, require_int_range
from ..common.web import current_role, current_user_id, error_response, form_data, roles_required, success, to_json
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, BusinessRuleError
from ..container import Container
from .session_status import session_time_status
from .tokens import decode_token

_ATTEND_PATH = re.compile(r"/attend/(\d+)/?$")


def parse_scanned_payload(text: str) -> tuple[int, str]:
    """Session id and token from a scanned QR payload.

    The lecturer screen encodes the full attend URL; a bare token is accepted
    too, in which case the session id is read from the token itself.
    """

    text = (text or "").strip()
    if not text:
        raise BusinessRuleError("The QR code is empty.")

    parsed = urlparse(text)
    if parsed.scheme and parsed.path:
        match = _ATTEND_PATH.search(parsed.path)
        token = (parse_qs(parsed.query).get("token") or [""])[0]
        if not match or not token:
            raise BusinessRuleError("This QR code is not an attendance code.")
        return int(match.group(1)), token

    session_part, _ = decode_token(text)
    if not session_part.isdigit():
        raise BusinessRuleError("This QR code is not an attendance code.")
    return int(session_part), text


def render_qr_png(data: str) -> io.BytesIO:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    buf.seek(0)
    return buf


def register(app: Flask, container: Container) -> None:
    def _ensure_teaches(course_id: int) -> None:
        if current_role() == Role.ADMIN:
            return
        if not container.course_service.is_lecturer_of(current_user_id(), course_id):
            raise AuthorizationError("You are not assigned to this course.")

    def _owned_session(session_id: int):
        session = container.attendance_service.get_session(session_id)
        _ensure_teaches(session.course_id)
        return session

    def _attend_url(session_id: int, token: str) -> str:
        return url_for("attend", session_id=session_id, token=token, _external=True)

    def _session_json(s, now):
        body = to_json(s)
        body["time_status"] = session_time_status(s, now).value
        return body

    # ===== STUDENT: MARK ATTENDANCE =====

    @app.route("/attend/<int:session_id>", methods=["POST"], endpoint="attend")
    @roles_required(Role.STUDENT)
    def attend(session_id: int):
        try:
            token: Optional[str] = request.args.get("token") or form_data().get("token") or None
            record_id = container.attendance_service.mark_attendance(session_id, current_user_id(), token=token)
            return success("Attendance marked. You are present.", record_id=record_id)
        except Exception as e:
            return error_response(e, fallback="Could not mark attendance. Please try again.")

    @app.route("/attend/scan", methods=["POST"], endpoint="attend_scan")
    @roles_required(Role.STUDENT)
    def attend_scan():
        """Mark attendance from an uploaded photo of the lecturer's QR code."""

        try:
            upload = request.files.get("image")
            if upload is None or not upload.filename:
                raise BusinessRuleError("Please upload a photo of the QR code.")

            try:
                image = Image.open(upload.stream)
            except UnidentifiedImageError:
                raise BusinessRuleError("The uploaded file is not an image.")

            # Imported here: pyzbar loads the native zbar library on import.
            from pyzbar.pyzbar import decode as pyzbar_decode

            decoded = pyzbar_decode(image)
            if not decoded:
                raise BusinessRuleError("No QR code found in the image. Try again closer to the screen.")

            session_id, token = parse_scanned_payload(decoded[0].data.decode("utf-8", errors="replace"))
            record_id = container.attendance_service.mark_attendance(session_id, current_user_id(), token=token)
            return success("Attendance marked. You are present.", record_id=record_id, session_id=session_id)
        except Exception as e:
            return error_response(e, fallback="Could not read the QR code. Please try again.")

    @app.route("/student/courses/<int:course_id>/attendance", methods=["GET"], endpoint="student_attendance")
    @roles_required(Role.STUDENT)
    def student_attendance(course_id: int):
        try:
            student_id = current_user_id()
            if not container.enrollment_service.is_enrolled_in_course(student_id, course_id):
                raise AuthorizationError("You are not enrolled in this course.")
            return jsonify(to_json(container.attendance_service.student_rate(student_id, course_id)))
        except Exception as e:
            return error_response(e)

    # ===== LECTURER: SESSIONS =====

    @app.route("/lecturer/courses/<int:course_id>/sessions", methods=["GET"], endpoint="lecturer_sessions")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_sessions(course_id: int):
        try:
            _ensure_teaches(course_id)
            now = now_local()
            sessions = container.attendance_service.list_sessions(course_id)
            return jsonify({"sessions": [_session_json(s, now) for s in sessions]})
        except Exception as e:
            return error_response(e)

    @app.route(
        "/lecturer/courses/<int:course_id>/sessions",
        methods=["POST"],
        endpoint="lecturer_session_create",
    )
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_session_create(course_id: int):
        try:
            _ensure_teaches(course_id)
            session_id = container.attendance_service.create_session(
                lecturer_id=current_user_id(),
                course_id=course_id,
                data=form_data(),
            )
            return success("Session created.", 201, session_id=session_id)
        except Exception as e:
            return error_response(e, fallback="Could not create the session.")

    @app.route("/lecturer/sessions/<int:session_id>/cancel", methods=["POST"], endpoint="lecturer_session_cancel")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_session_cancel(session_id: int):
        try:
            _owned_session(session_id)
            container.attendance_service.cancel_session(session_id)
            return success("Session cancelled.")
        except Exception as e:
            return error_response(e, fallback="Could not cancel the session.")

    @app.route("/lecturer/sessions/<int:session_id>/status", methods=["GET"], endpoint="lecturer_session_status")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_session_status(session_id: int):
        try:
            session = _owned_session(session_id)
            return jsonify(_session_json(session, now_local()))
        except Exception as e:
            return error_response(e)

    @app.route("/lecturer/sessions/<int:session_id>/token", methods=["GET"], endpoint="lecturer_session_token")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_session_token(session_id: int):
        try:
            _owned_session(session_id)
            token = container.attendance_service.issue_token(session_id)
            return jsonify({"token": token, "url": _attend_url(session_id, token)})
        except Exception as e:
            return error_response(e)

    @app.route("/lecturer/sessions/<int:session_id>/qr.png", methods=["GET"], endpoint="lecturer_session_qr")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_session_qr(session_id: int):
        """Current QR code for the lecturer screen; the page refreshes it every few minutes."""

        try:
            _owned_session(session_id)
            token = container.attendance_service.issue_token(session_id)
            buf = render_qr_png(_attend_url(session_id, token))
            return send_file(buf, mimetype="image/png", max_age=0)
        except Exception as e:
            return error_response(e, fallback="Could not generate the QR code.")

    @app.route("/lecturer/sessions/<int:session_id>/roster", methods=["GET"], endpoint="lecturer_session_roster")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_session_roster(session_id: int):
        try:
            _owned_session(session_id)
            return jsonify({"records": to_json(container.attendance_service.session_roster(session_id))})
        except Exception as e:
            return error_response(e)

    @app.route("/lecturer/sessions/<int:session_id>/mark", methods=["POST"], endpoint="lecturer_session_mark")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_session_mark(session_id: int):
        try:
            _owned_session(session_id)
            data = form_data()
            errors = FieldErrors()
            student_id = errors.run(require_int_range, data.get("student_id"), "student_id", 1, 2**31 - 1)
            errors.raise_if_any("Please choose a student.")

            record_id = container.attendance_service.record_manual(session_id, student_id, data.get("status") or "")
            return success("Attendance updated.", record_id=record_id)
        except Exception as e:
            return error_response(e, fallback="Could not update attendance.")

    @app.route("/lecturer/courses/<int:course_id>/attendance", methods=["GET"], endpoint="lecturer_course_attendance")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def lecturer_course_attendance(course_id: int):
        try:
            _ensure_teaches(course_id)
            rates = container.attendance_service.course_rates(course_id)
            return jsonify(to_json(rates))
        except Exception as e:
            return error_response(e)
