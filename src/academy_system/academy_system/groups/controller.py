from __future__ import annotations

from flask import Flask

from ..common.web import current_context, json_body, login_required, ok, optional_date, optional_int, required_date
from ..core.enums import GroupType
from ..core.exceptions import ValidationError
from ..container import Container
from .model import Group


def group_to_dict(group: Group) -> dict:
    return {
        "id": group.group_id,
        "name": group.name,
        "institutionId": group.institution_id,
        "type": group.group_type.value,
        "startDate": group.start_date.isoformat(),
        "endDate": group.end_date.isoformat() if group.end_date else None,
        "sedeId": group.sede_id,
        "teacherId": group.teacher_id,
        "studentIds": sorted(group.student_ids),
    }


def _parse_type(value) -> GroupType:
    try:
        return GroupType(str(value or ""))
    except ValueError:
        raise ValidationError("Tipo de grupo no válido")


def _group_fields(data: dict) -> dict:
    return {
        "name": data.get("name", ""),
        "group_type": _parse_type(data.get("type")),
        "start_date": required_date(data.get("startDate"), "Fecha de inicio"),
        "end_date": optional_date(data.get("endDate"), "Fecha de fin"),
        "sede_id": optional_int(data.get("sedeId"), "Sede"),
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/groups", endpoint="list_groups")
    @login_required
    def list_groups():
        ctx = current_context(container.users_repo)
        return ok(groups=[group_to_dict(g) for g in container.group_service.list_groups(ctx)])

    @app.route("/api/groups/<int:group_id>", endpoint="get_group")
    @login_required
    def get_group(group_id: int):
        ctx = current_context(container.users_repo)
        return ok(group=group_to_dict(container.group_service.get_group(ctx, group_id)))

    @app.route("/api/groups", methods=["POST"], endpoint="create_group")
    @login_required
    def create_group():
        ctx = current_context(container.users_repo)
        data = json_body()
        group_id = container.group_service.create_group(
            ctx,
            teacher_id=optional_int(data.get("teacherId"), "Docente"),
            **_group_fields(data),
        )
        return ok(id=group_id), 201

    @app.route("/api/groups/<int:group_id>", methods=["PUT"], endpoint="update_group")
    @login_required
    def update_group(group_id: int):
        ctx = current_context(container.users_repo)
        container.group_service.update_group(ctx, group_id=group_id, **_group_fields(json_body()))
        return ok(id=group_id)

    @app.route("/api/groups/<int:group_id>/teacher", methods=["PUT"], endpoint="assign_group_teacher")
    @login_required
    def assign_teacher(group_id: int):
        ctx = current_context(container.users_repo)
        teacher_id = optional_int(json_body().get("teacherId"), "Docente")
        container.group_service.assign_teacher(ctx, group_id=group_id, teacher_id=teacher_id)
        return ok(id=group_id)

    @app.route("/api/groups/<int:group_id>/students", methods=["PUT"], endpoint="assign_group_students")
    @login_required
    def assign_students(group_id: int):
        ctx = current_context(container.users_repo)
        raw = json_body().get("studentIds") or []
        if not isinstance(raw, list):
            raise ValidationError("Lista de estudiantes no válida")
        student_ids = [optional_int(s, "Estudiante") for s in raw]
        container.group_service.assign_students(
            ctx, group_id=group_id, student_ids=[s for s in student_ids if s is not None]
        )
        return ok(id=group_id)

    @app.route("/api/groups/<int:group_id>", methods=["DELETE"], endpoint="delete_group")
    @login_required
    def delete_group(group_id: int):
        ctx = current_context(container.users_repo)
        container.group_service.delete_group(ctx, group_id=group_id)
        return ok(message="Grupo eliminado")
