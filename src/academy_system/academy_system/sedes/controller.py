from __future__ import annotations

from flask import Flask

from ..common.web import current_context, json_body, login_required, ok, optional_int
from ..container import Container
from .model import Sede


def sede_to_dict(sede: Sede) -> dict:
    return {
        "id": sede.sede_id,
        "name": sede.name,
        "institutionId": sede.institution_id,
        "supervisorId": sede.supervisor_id,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/sedes", endpoint="list_sedes")
    @login_required
    def list_sedes():
        ctx = current_context(container.users_repo)
        return ok(sedes=[sede_to_dict(s) for s in container.sede_service.list_sedes(ctx)])

    @app.route("/api/sedes", methods=["POST"], endpoint="create_sede")
    @login_required
    def create_sede():
        ctx = current_context(container.users_repo)
        data = json_body()
        sede_id = container.sede_service.save_sede(
            ctx,
            name=data.get("name", ""),
            supervisor_id=optional_int(data.get("supervisorId"), "Supervisor"),
        )
        return ok(id=sede_id), 201

    @app.route("/api/sedes/<int:sede_id>", methods=["PUT"], endpoint="update_sede")
    @login_required
    def update_sede(sede_id: int):
        ctx = current_context(container.users_repo)
        data = json_body()
        container.sede_service.save_sede(
            ctx,
            sede_id=sede_id,
            name=data.get("name", ""),
            supervisor_id=optional_int(data.get("supervisorId"), "Supervisor"),
        )
        return ok(id=sede_id)

    @app.route("/api/sedes/<int:sede_id>", methods=["DELETE"], endpoint="delete_sede")
    @login_required
    def delete_sede(sede_id: int):
        ctx = current_context(container.users_repo)
        container.sede_service.delete_sede(ctx, sede_id=sede_id)
        return ok(message="Sede eliminada")
