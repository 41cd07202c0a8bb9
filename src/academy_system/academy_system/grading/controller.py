from __future__ import annotations

from flask import Flask, request, session

from ..common.web import csv_response, current_context, json_body, login_required, ok, optional_int
from ..core.constants import GRADING_CONFIG_KEY, MAX_ACCUMULATED_ACTIVITIES
from ..container import Container
from .calculator.standard_calculator import format_score
from .model import StudentGradeSummary
from .service import GradeReport, PartialReportRow


def summary_to_dict(summary: StudentGradeSummary) -> dict:
    return {
        "studentId": summary.student_id,
        "name": summary.name,
        "accumulatedTotals": list(summary.accumulated_totals),
        "partialTotals": list(summary.partial_totals),
        "finalGrade": summary.final_grade,
        "finalGradeDisplay": format_score(summary.final_grade, final=True),
        "status": summary.status.value,
    }


def row_to_dict(row: PartialReportRow) -> dict:
    return {
        "studentId": row.student_id,
        "name": row.name,
        "partial": row.partial_number,
        "activities": list(row.activity_scores),
        "exam": row.exam_score,
        "accumulatedTotal": row.accumulated_total,
        "partialTotal": row.partial_total,
        "partialTotalDisplay": format_score(row.partial_total),
        "status": row.status.value,
    }


def _csv_rows(report: GradeReport):
    for row in report.rows:
        out = {"student_id": row.student_id, "name": row.name, "partial": row.partial_number}
        for index, score in enumerate(row.activity_scores, start=1):
            out[f"activity_{index}"] = format_score(score)
        out["accumulated_total"] = format_score(row.accumulated_total)
        out["exam"] = format_score(row.exam_score)
        out["partial_total"] = format_score(row.partial_total)
        out["status"] = row.status.value
        yield out


CSV_FIELDS = (
    ["student_id", "name", "partial"]
    + [f"activity_{i}" for i in range(1, MAX_ACCUMULATED_ACTIVITIES + 1)]
    + ["accumulated_total", "exam", "partial_total", "status"]
)


def register(app: Flask, container: Container) -> None:
    def _build_report(ctx) -> GradeReport:
        return container.grade_report_service.build_partial_report(
            ctx,
            group_id=optional_int(request.args.get("groupId"), "Grupo"),
            student_id=optional_int(request.args.get("studentId"), "Estudiante"),
        )

    @app.route("/api/grades/report", endpoint="grades_report")
    @login_required
    def grades_report():
        ctx = current_context(container.users_repo)
        report = _build_report(ctx)
        return ok(
            config=report.config.to_dict(),
            rows=[row_to_dict(r) for r in report.rows],
            summaries=[summary_to_dict(s) for s in report.summaries],
        )

    @app.route("/api/grades/report.csv", endpoint="grades_report_csv")
    @login_required
    def grades_report_csv():
        ctx = current_context(container.users_repo)
        report = _build_report(ctx)
        return csv_response(app, fieldnames=CSV_FIELDS, rows=_csv_rows(report), filename="grades_report.csv")

    @app.route("/api/grades/<int:student_id>", endpoint="get_student_grades")
    @login_required
    def get_student_grades(student_id: int):
        ctx = current_context(container.users_repo)
        grades = container.grade_report_service.get_student_grades(ctx, student_id=student_id)
        return ok(studentId=student_id, grades={k: v.to_dict() for k, v in sorted(grades.items())})

    @app.route("/api/grades/<int:student_id>", methods=["PUT"], endpoint="save_student_grades")
    @login_required
    def save_student_grades(student_id: int):
        ctx = current_context(container.users_repo)
        data = json_body()
        summary = container.grade_report_service.save_grades(
            ctx, student_id=student_id, partials=data.get("grades") or {}
        )
        return ok(summary=summary_to_dict(summary))

    @app.route("/api/grading-config", endpoint="get_grading_config")
    @login_required
    def get_grading_config():
        ctx = current_context(container.users_repo)
        return ok(config=ctx.grading_config.to_dict())

    @app.route("/api/grading-config", methods=["PUT"], endpoint="update_grading_config")
    @login_required
    def update_grading_config():
        ctx = current_context(container.users_repo)
        config = container.grading_config_service.update(ctx, json_body())
        session[GRADING_CONFIG_KEY] = config.to_dict()
        return ok(config=config.to_dict())
