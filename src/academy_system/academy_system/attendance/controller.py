from __future__ import annotations

import io
import json

from flask import Flask, request, send_file

from ..common.qr import render_qr_png
from ..common.web import (
    csv_response,
    current_context,
    json_body,
    login_required,
    ok,
    optional_date,
    optional_int,
    required_date,
    required_time,
)
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .model import AttendanceRecord, Session, StaffCheckIn
from .service import AttendanceEntry


def session_to_dict(s: Session) -> dict:
    return {
        "id": s.session_id,
        "groupId": s.group_id,
        "institutionId": s.institution_id,
        "date": s.session_date.isoformat(),
        "time": s.session_time.strftime("%H:%M"),
    }


def record_to_dict(r: AttendanceRecord) -> dict:
    return {
        "id": r.record_id,
        "sessionId": r.session_id,
        "userId": r.user_id,
        "status": r.status.value,
        "timestamp": r.timestamp.isoformat(timespec="seconds"),
        "observation": r.observation,
    }


def checkin_to_dict(c: StaffCheckIn) -> dict:
    return {
        "id": c.checkin_id,
        "userId": c.user_id,
        "userName": c.user_name,
        "sedeId": c.sede_id,
        "date": c.check_date.isoformat(),
        "timestamp": c.timestamp.isoformat(timespec="seconds"),
        "codeUsed": c.code_used,
    }


def _parse_entries(raw) -> list[AttendanceEntry]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("No hay registros de asistencia")
    entries = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValidationError("Registro de asistencia no válido")
        try:
            status = AttendanceStatus(str(item.get("status") or ""))
        except ValueError:
            raise ValidationError("Estado de asistencia no válido")
        user_id = optional_int(item.get("userId"), "Estudiante")
        if user_id is None:
            raise ValidationError("Estudiante no válido")
        entries.append(AttendanceEntry(user_id=user_id, status=status, observation=item.get("observation")))
    return entries


def _png(data: str):
    return send_file(io.BytesIO(render_qr_png(data)), mimetype="image/png")


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/sessions", endpoint="list_sessions")
    @login_required
    def list_sessions():
        ctx = current_context(container.users_repo)
        group_id = optional_int(request.args.get("groupId"), "Grupo")
        return ok(sessions=[session_to_dict(s) for s in service.list_sessions(ctx, group_id=group_id)])

    @app.route("/api/sessions", methods=["POST"], endpoint="create_session")
    @login_required
    def create_session():
        ctx = current_context(container.users_repo)
        data = json_body()
        group_id = optional_int(data.get("groupId"), "Grupo")
        if group_id is None:
            raise ValidationError("Grupo no válido")
        session_id = service.create_session(
            ctx,
            group_id=group_id,
            session_date=required_date(data.get("date"), "Fecha"),
            session_time=required_time(data.get("time"), "Hora"),
        )
        return ok(id=session_id), 201

    @app.route("/api/sessions/<int:session_id>/records", endpoint="session_records")
    @login_required
    def session_records(session_id: int):
        ctx = current_context(container.users_repo)
        records = service.list_session_records(ctx, session_id=session_id)
        return ok(records=[record_to_dict(r) for r in records])

    @app.route("/api/sessions/<int:session_id>/records", methods=["PUT"], endpoint="log_attendance")
    @login_required
    def log_attendance(session_id: int):
        ctx = current_context(container.users_repo)
        count = service.log_attendance(ctx, session_id=session_id, entries=_parse_entries(json_body().get("entries")))
        return ok(saved=count)

    @app.route("/api/sessions/<int:session_id>/qr.png", endpoint="session_qr_image")
    @login_required
    def session_qr_image(session_id: int):
        ctx = current_context(container.users_repo)
        s = service.get_session(ctx, session_id, for_write=True)
        return _png(s.qr_code_value or "")

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="student_check_in")
    @login_required
    def student_check_in():
        ctx = current_context(container.users_repo)
        code = json_body().get("code")
        if not isinstance(code, str) or not code.strip():
            raise ValidationError("Código QR no válido")
        record = service.student_qr_check_in(ctx, code=code)
        return ok(record=record_to_dict(record)), 201

    @app.route("/api/staff-attendance/qr", endpoint="staff_qr_payload")
    @login_required
    def staff_qr_payload():
        ctx = current_context(container.users_repo)
        payload = service.staff_qr_payload(ctx, sede_id=optional_int(request.args.get("sedeId"), "Sede"))
        return ok(payload=payload)

    @app.route("/api/staff-attendance/qr.png", endpoint="staff_qr_image")
    @login_required
    def staff_qr_image():
        ctx = current_context(container.users_repo)
        payload = service.staff_qr_payload(ctx, sede_id=optional_int(request.args.get("sedeId"), "Sede"))
        return _png(json.dumps(payload))

    @app.route("/api/staff-attendance/check-in", methods=["POST"], endpoint="staff_check_in")
    @login_required
    def staff_check_in():
        ctx = current_context(container.users_repo)
        data = json_body()
        checkin = service.staff_qr_check_in(ctx, payload=data.get("payload") or data)
        return ok(checkin=checkin_to_dict(checkin)), 201

    def _staff_report(ctx):
        return service.staff_attendance_report(
            ctx,
            start=optional_date(request.args.get("start"), "Fecha de inicio"),
            end=optional_date(request.args.get("end"), "Fecha de fin"),
        )

    @app.route("/api/staff-attendance/report", endpoint="staff_attendance_report")
    @login_required
    def staff_attendance_report():
        ctx = current_context(container.users_repo)
        return ok(checkins=[checkin_to_dict(c) for c in _staff_report(ctx)])

    @app.route("/api/staff-attendance/report.csv", endpoint="staff_attendance_report_csv")
    @login_required
    def staff_attendance_report_csv():
        ctx = current_context(container.users_repo)
        rows = [
            {
                "date": c.check_date.isoformat(),
                "user_id": c.user_id,
                "name": c.user_name,
                "sede_id": c.sede_id if c.sede_id is not None else "",
                "checked_in_at": c.timestamp.strftime("%H:%M:%S"),
                "code_used": c.code_used,
            }
            for c in _staff_report(ctx)
        ]
        return csv_response(
            app,
            fieldnames=["date", "user_id", "name", "sede_id", "checked_in_at", "code_used"],
            rows=rows,
            filename="staff_attendance.csv",
        )

    @app.route("/api/me/attendance", endpoint="my_attendance")
    @login_required
    def my_attendance():
        ctx = current_context(container.users_repo)
        if ctx.user.role.is_staff:
            return ok(checkins=[checkin_to_dict(c) for c in service.my_check_ins(ctx)])
        return ok(records=[record_to_dict(r) for r in service.my_attendance(ctx)])
