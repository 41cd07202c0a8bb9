from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, request, session

from ..common.web import current_context, error_response, json_body, login_required, ok, optional_int
from ..core.constants import GRADING_CONFIG_KEY
from ..core.enums import Role, StudentLevel
from ..core.exceptions import ValidationError
from ..container import Container
from ..grading.model import DEFAULT_GRADING_CONFIG
from .model import User

logger = logging.getLogger(__name__)


def user_to_dict(user: User) -> dict:
    return {
        "id": user.user_id,
        "name": user.name,
        "username": user.username,
        "email": user.email,
        "role": user.role.value,
        "institutionId": user.institution_id,
        "sedeId": user.sede_id,
        "phoneNumber": user.phone_number,
        "level": user.level.value if user.level else None,
        "requiresPasswordChange": user.requires_password_change,
    }


def _parse_role(value) -> Role:
    try:
        return Role(str(value or "").strip())
    except ValueError:
        raise ValidationError("Rol no válido")


def _parse_level(value):
    if not value:
        return None
    try:
        return StudentLevel(str(value))
    except ValueError:
        raise ValidationError("Nivel no válido")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = json_body()
        identifier = data.get("identifier") or data.get("username") or data.get("email") or ""
        s_user = container.auth_service.authenticate(identifier, data.get("password", ""))

        session.clear()
        session.permanent = bool(data.get("rememberMe"))
        app.permanent_session_lifetime = timedelta(days=7)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value

        # Read once per login; every request of this session aggregates with it.
        config = DEFAULT_GRADING_CONFIG
        if s_user.institution_id is not None:
            config = container.grading_config_service.load(s_user.institution_id)
        session[GRADING_CONFIG_KEY] = config.to_dict()

        logger.info("sign-in: user_id=%s role=%s", s_user.user_id, s_user.role.value)
        return ok(
            user={
                "id": s_user.user_id,
                "name": s_user.name,
                "role": s_user.role.value,
                "institutionId": s_user.institution_id,
                "sedeId": s_user.sede_id,
                "requiresPasswordChange": s_user.requires_password_change,
            }
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return ok(message="Sesión cerrada")

    @app.route("/api/auth/me", endpoint="me")
    @login_required
    def me():
        ctx = current_context(container.users_repo)
        return ok(user=user_to_dict(ctx.user), gradingConfig=ctx.grading_config.to_dict())

    @app.route("/api/auth/change-password", methods=["POST"], endpoint="change_password")
    @login_required
    def change_password():
        data = json_body()
        container.auth_service.change_password(
            int(session["user_id"]),
            current_password=data.get("currentPassword", ""),
            new_password=data.get("newPassword", ""),
        )
        return ok(message="Contraseña actualizada")

    @app.route("/api/staff", endpoint="list_staff")
    @login_required
    def list_staff():
        ctx = current_context(container.users_repo)
        return ok(staff=[user_to_dict(u) for u in container.user_service.list_staff(ctx)])

    @app.route("/api/students", endpoint="list_students")
    @login_required
    def list_students():
        ctx = current_context(container.users_repo)
        group_id = optional_int(request.args.get("groupId"), "Grupo")
        students = container.user_service.list_students(ctx, group_id=group_id)
        return ok(students=[user_to_dict(u) for u in students])

    @app.route("/api/users", methods=["POST"], endpoint="create_user")
    @login_required
    def create_user():
        ctx = current_context(container.users_repo)
        data = json_body()
        user_id = container.user_service.create_account(
            ctx,
            name=data.get("name", ""),
            username=data.get("username", ""),
            role=_parse_role(data.get("role")),
            email=data.get("email"),
            password=data.get("password") or None,
            sede_id=optional_int(data.get("sedeId"), "Sede"),
            level=_parse_level(data.get("level")),
            phone_number=data.get("phoneNumber"),
        )
        return ok(id=user_id), 201

    @app.route("/api/users/<int:user_id>", methods=["PUT"], endpoint="update_user")
    @login_required
    def update_user(user_id: int):
        ctx = current_context(container.users_repo)
        data = json_body()
        user = container.user_service.update_profile(
            ctx,
            user_id=user_id,
            name=data.get("name", ""),
            phone_number=data.get("phoneNumber"),
            level=_parse_level(data.get("level")),
            sede_id=optional_int(data.get("sedeId"), "Sede"),
        )
        return ok(user=user_to_dict(user))

    @app.route("/api/users/<int:user_id>/role", methods=["PUT"], endpoint="change_role")
    @login_required
    def change_role(user_id: int):
        ctx = current_context(container.users_repo)
        container.user_service.change_role(ctx, user_id=user_id, role=_parse_role(json_body().get("role")))
        return ok(message="Rol actualizado")

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="delete_user")
    @login_required
    def delete_user(user_id: int):
        ctx = current_context(container.users_repo)
        container.user_service.delete_user(ctx, user_id=user_id)
        return ok(message="Usuario eliminado")

    @app.route("/api/health", endpoint="health")
    def health():
        try:
            container.conn.connect().close()
        except Exception:
            logger.warning("database health check failed", exc_info=True)
            return error_response(503, "database_unavailable", "Base de datos no disponible")
        return ok(status="ok")
