from __future__ import annotations

import csv
import io

from flask import Flask, jsonify

from ..common.web import current_role, current_user_id, error_response, roles_required
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..container import Container
from .service import CSV_FIELDS, ReportData


def register(app: Flask, container: Container) -> None:
    def _ensure_teaches(course_id: int) -> None:
        if current_role() == Role.ADMIN:
            return
        if not container.course_service.is_lecturer_of(current_user_id(), course_id):
            raise AuthorizationError("You are not assigned to this course.")

    def _write_report_csv(*, data: ReportData, filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for row in data.rows:
            writer.writerow({k: ("" if v is None else v) for k, v in row.items()})

        # BOM so spreadsheet apps detect UTF-8 names.
        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/lecturer/courses/<int:course_id>/report", methods=["GET"], endpoint="course_report")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def course_report(course_id: int):
        try:
            _ensure_teaches(course_id)
            data = container.report_service.build_course_report(course_id)
            return jsonify({"rows": data.rows, "summary": data.summary, "missing": data.missing})
        except Exception as e:
            return error_response(e)

    @app.route("/lecturer/courses/<int:course_id>/report.csv", methods=["GET"], endpoint="course_report_csv")
    @roles_required(Role.LECTURER, Role.ADMIN)
    def course_report_csv(course_id: int):
        try:
            _ensure_teaches(course_id)
            data = container.report_service.build_course_report(course_id)
            filename = f"course_report_{data.summary['course_code']}.csv"
            return _write_report_csv(data=data, filename=filename)
        except Exception as e:
            return error_response(e)
