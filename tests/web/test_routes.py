from datetime import datetime
from urllib.parse import urlencode

import pytest

import src.academic_system.academic_system.attendance.service as attendance_service_module
from src.academic_system.academic_system.attendance.controller import parse_scanned_payload
from src.academic_system.academic_system.attendance.tokens import encode_token
from src.academic_system.academic_system.core.exceptions import BusinessRuleError

DURING = datetime(2025, 10, 6, 9, 30)


def test_sign_in_required(client):
    res = client.get("/api/courses")

    assert res.status_code == 401
    assert res.get_json()["type"] == "error"


def test_wrong_role_is_forbidden(client, login):
    login(3, "student")

    assert client.get("/lecturer/courses").status_code == 403


def test_course_listing(client, login):
    login(3, "student")

    body = client.get("/api/courses").get_json()

    assert [c["course_code"] for c in body["courses"]] == ["CS201"]


def test_unknown_course_is_404(client, login):
    login(1, "admin")

    res = client.get("/api/courses/99")

    assert res.status_code == 404
    assert res.get_json() == {"type": "error", "message": "Course not found"}


def test_admin_creates_course(client, login):
    login(1, "admin")

    res = client.post("/admin/courses", json={"course_code": "ma101", "course_name": "Calculus I", "credits": 4})

    assert res.status_code == 201
    body = res.get_json()
    assert body["type"] == "success"
    assert isinstance(body["course_id"], int)


def test_validation_errors_are_reported_per_field(client, login):
    login(1, "admin")

    res = client.post("/admin/courses", data={"course_code": "", "course_name": "Nameless", "credits": "99"})

    assert res.status_code == 400
    body = res.get_json()
    assert set(body["field_errors"]) == {"course_code", "credits"}


def test_business_rule_errors_are_400(client, login):
    login(1, "admin")

    res = client.post("/admin/courses", json={"course_code": "CS201", "course_name": "Copy"})

    assert res.status_code == 400
    assert "already exists" in res.get_json()["message"]


def test_unexpected_errors_are_500(client, login, container, monkeypatch):
    login(1, "admin")

    def broken(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(container.course_service, "list_assignments", broken)

    res = client.get("/api/courses/1")

    assert res.status_code == 500
    assert "connection reset" not in res.get_json()["message"]


def test_lecturer_course_page(client, login):
    login(2, "lecturer")

    body = client.get("/lecturer/courses/1").get_json()

    assert body["course"]["course_code"] == "CS201"
    assert [s["student_id"] for s in body["students"]["students"]] == [3, 4]
    assert [c["name"] for c in body["categories"]] == ["Homework", "Midterm", "Final"]
    assert body["missing"] == []


def test_lecturer_only_sees_own_courses(client, login):
    login(9, "lecturer")

    assert client.get("/lecturer/courses/1/gradebook").status_code == 403
    assert client.get("/lecturer/courses/1/report").status_code == 403


def test_gradebook_flow(client, login):
    login(2, "lecturer")

    res = client.post("/lecturer/courses/1/grades", data={"student_id": "3", "category_id": "3", "percentage": "90"})
    assert res.status_code == 200

    book = client.get("/lecturer/courses/1/gradebook").get_json()
    alice = book["rows"][0]
    assert alice["scores"]["3"] == 90.0
    assert alice["final"]["percentage"] == 36.0
    assert alice["final"]["ungraded_categories"] == ["Homework", "Midterm"]


def test_saving_unbalanced_categories_returns_warning(client, login):
    login(2, "lecturer")

    res = client.post(
        "/lecturer/courses/1/categories",
        json={"categories": [{"name": "Exam", "percentage": 70}, {"name": "Labs", "percentage": 20}]},
    )

    assert res.status_code == 200
    assert res.get_json()["warning"] == "Category weights add up to 90%, not 100%."


def test_student_marks_attendance_with_token(client, login, morning_session, monkeypatch):
    monkeypatch.setattr(attendance_service_module, "now_local", lambda: DURING)
    login(3, "student")
    token = encode_token(morning_session.session_id, DURING)

    res = client.post(f"/attend/{morning_session.session_id}", query_string={"token": token})

    assert res.status_code == 200
    assert res.get_json()["type"] == "success"

    again = client.post(f"/attend/{morning_session.session_id}", data={"token": token})
    assert again.status_code == 400
    assert again.get_json()["message"] == "Attendance already marked for this session"


def test_attend_outside_window(client, login, morning_session, monkeypatch):
    monkeypatch.setattr(attendance_service_module, "now_local", lambda: datetime(2025, 10, 6, 11, 0))
    login(3, "student")

    res = client.post(f"/attend/{morning_session.session_id}")

    assert res.status_code == 400
    assert res.get_json()["message"] == "This session has already ended"


def test_scan_requires_an_image(client, login):
    login(3, "student")

    res = client.post("/attend/scan", data={})

    assert res.status_code == 400
    assert "upload" in res.get_json()["message"]


def test_lecturer_token_and_qr(client, login, morning_session):
    login(2, "lecturer")

    body = client.get(f"/lecturer/sessions/{morning_session.session_id}/token").get_json()
    assert f"/attend/{morning_session.session_id}?token=" in body["url"]
    assert parse_scanned_payload(body["url"]) == (morning_session.session_id, body["token"])

    png = client.get(f"/lecturer/sessions/{morning_session.session_id}/qr.png")
    assert png.status_code == 200
    assert png.mimetype == "image/png"
    assert png.data.startswith(b"\x89PNG")


def test_manual_mark_and_roster(client, login, morning_session):
    login(2, "lecturer")
    sid = morning_session.session_id

    res = client.post(f"/lecturer/sessions/{sid}/mark", data={"student_id": "3", "status": "late"})
    assert res.status_code == 200

    roster = client.get(f"/lecturer/sessions/{sid}/roster").get_json()["records"]
    assert [(r["student_id"], r["status"], r["method_used"]) for r in roster] == [(3, "late", "manual")]

    rates = client.get("/lecturer/courses/1/attendance").get_json()
    assert {r["student_id"]: r["rate"] for r in rates["rates"]} == {3: 100.0, 4: 0.0}


def test_report_csv_has_bom_and_header(client, login, container):
    login(2, "lecturer")

    res = client.get("/lecturer/courses/1/report.csv")

    assert res.status_code == 200
    assert res.data.startswith(b"\xef\xbb\xbf")
    header = res.data.decode("utf-8-sig").splitlines()[0]
    assert header.startswith("student_number,student_name,program")
    assert "course_report_CS201.csv" in res.headers["Content-Disposition"]


def test_scanned_payload_forms():
    token = encode_token(12, DURING)

    assert parse_scanned_payload("https://campus.example/attend/12?" + urlencode({"token": token})) == (12, token)
    assert parse_scanned_payload(token) == (12, token)
    with pytest.raises(BusinessRuleError):
        parse_scanned_payload("https://campus.example/menu?token=abc")
    with pytest.raises(BusinessRuleError):
        parse_scanned_payload("   ")


def test_concurrent_duplicate_check_in_is_a_400(client, login, repos, morning_session, monkeypatch):
    monkeypatch.setattr(attendance_service_module, "now_local", lambda: DURING)

    def lost_race(**kwargs):
        raise BusinessRuleError("Attendance already marked for this session")

    monkeypatch.setattr(repos["attendance"], "create_record", lost_race)
    login(3, "student")

    res = client.post(f"/attend/{morning_session.session_id}")

    assert res.status_code == 400
    assert res.get_json() == {"type": "error", "message": "Attendance already marked for this session"}
