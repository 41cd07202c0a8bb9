from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..access.principal import AdminPrincipal, SupervisorPrincipal
from ..access.resolver import AccessScopeResolver
from ..access.scope import ScopeDescriptor
from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.context import RequestContext
from ..core.enums import Role, StudentLevel
from ..core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from ..groups.repository import GroupRepository
from ..sedes.repository import SedeRepository
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)

SUPERVISOR_CREATABLE_ROLES = frozenset({Role.TEACHER, Role.CAJA, Role.STUDENT})


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    name: str
    role: Role
    institution_id: Optional[int]
    sede_id: Optional[int]
    requires_password_change: bool


class AuthService:
    """Use cases: sign in, re-authenticate, change password."""

    def __init__(self, users: UserRepository):
        self._users = users

    def _find(self, identifier: str) -> Optional[User]:
        identifier = (identifier or "").strip()
        if not identifier:
            return None
        if "@" in identifier:
            return self._users.get_by_email(identifier)
        return self._users.get_by_username(identifier)

    @staticmethod
    def _password_ok(user: User, password: str) -> bool:
        try:
            return check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            return False

    def authenticate(self, identifier: str, password: str) -> SessionUser:
        """Sign in with a username or an e-mail address."""

        user = self._find(identifier)
        if not user or not user.is_active or not self._password_ok(user, password):
            logger.info("failed sign-in for identifier=%r", identifier)
            raise AuthenticationError("Usuario o contraseña incorrectos")

        return SessionUser(
            user_id=user.user_id,
            name=user.name,
            role=user.role,
            institution_id=user.institution_id,
            sede_id=user.sede_id,
            requires_password_change=user.requires_password_change,
        )

    def reauthenticate(self, user_id: int, password: str) -> User:
        """Confirm the current password before a sensitive operation."""

        user = self._users.get_by_id(int(user_id))
        if not user or not user.is_active or not self._password_ok(user, password):
            raise AuthenticationError("La contraseña actual no es correcta")
        return user

    def change_password(self, user_id: int, *, current_password: str, new_password: str) -> None:
        self.reauthenticate(user_id, current_password)
        require_min_length(new_password, "La nueva contraseña", MIN_PASSWORD_LENGTH)
        if new_password == current_password:
            raise ValidationError("La nueva contraseña debe ser distinta de la actual")

        if not self._users.update_password(
            int(user_id),
            password_hash=generate_password_hash(new_password),
            requires_password_change=False,
        ):
            raise ValidationError("No se pudo actualizar la contraseña")


class UserService:
    """Use cases: list and manage staff and students."""

    def __init__(
        self,
        users: UserRepository,
        groups: GroupRepository,
        sedes: SedeRepository,
        resolver: AccessScopeResolver,
    ):
        self._users = users
        self._groups = groups
        self._sedes = sedes
        self._resolver = resolver

    def list_staff(self, ctx: RequestContext) -> Sequence[User]:
        scope = self._resolver.staff_scope(ctx.user)
        if scope.denied:
            raise AuthorizationError("No tienes permiso para ver el personal")
        return self._users.list_in_scope(scope)

    def list_students(self, ctx: RequestContext, *, group_id: Optional[int] = None) -> Sequence[User]:
        # Two steps: visible groups first, then the students they give access to.
        groups_scope = self._resolver.groups_scope(ctx.user)
        groups = self._groups.list_in_scope(groups_scope) if not groups_scope.denied else []
        scope = self._resolver.students_scope(ctx.user, groups)
        if scope.denied:
            raise AuthorizationError("No tienes permiso para ver estudiantes")

        students = self._users.list_in_scope(scope)
        if group_id is not None:
            group = next((g for g in groups if g.group_id == int(group_id)), None)
            if group is None:
                raise AuthorizationError("Grupo fuera de tu alcance")
            students = [s for s in students if s.user_id in group.student_ids]
        return students

    def create_account(
        self,
        ctx: RequestContext,
        *,
        name: str,
        username: str,
        role: Role,
        email: Optional[str] = None,
        password: Optional[str] = None,
        sede_id: Optional[int] = None,
        level: Optional[StudentLevel] = None,
        phone_number: Optional[str] = None,
    ) -> int:
        principal = self._resolver.principal(ctx.user)
        if isinstance(principal, SupervisorPrincipal):
            if role not in SUPERVISOR_CREATABLE_ROLES:
                raise AuthorizationError("Un supervisor solo puede crear docentes, caja o estudiantes")
            if role.carries_sede:
                sede_id = principal.sede_id
        elif not isinstance(principal, AdminPrincipal):
            raise AuthorizationError("No tienes permiso para crear usuarios")

        name = require_non_empty(name, "Nombre")
        username = require_non_empty(username, "Nombre de usuario")
        email = (email or "").strip() or None

        # Accounts created without a password start with the username and must change it.
        requires_password_change = not password
        password = password or username
        require_min_length(password, "Contraseña", MIN_PASSWORD_LENGTH)

        if self._users.get_by_username(username):
            raise ValidationError("El nombre de usuario ya existe")
        if email and self._users.get_by_email(email):
            raise ValidationError("El correo electrónico ya está registrado")

        sede_id = self._checked_sede(principal.institution_id, role, sede_id)

        user_id = self._users.create_user(
            name=name,
            username=username,
            email=email,
            password_hash=generate_password_hash(password),
            role=role,
            institution_id=principal.institution_id,
            sede_id=sede_id,
            level=level if role == Role.STUDENT else None,
            phone_number=(phone_number or "").strip() or None,
            requires_password_change=requires_password_change,
        )
        logger.info("user created: user_id=%s role=%s by=%s", user_id, role.value, ctx.user.user_id)
        return user_id

    def _checked_sede(self, institution_id: int, role: Role, sede_id: Optional[int]) -> Optional[int]:
        if not role.carries_sede or role == Role.SUPERVISOR:
            # Supervisors are linked to a sede through sede management only.
            return None
        if sede_id is None:
            return None
        sede = self._sedes.get_by_id(int(sede_id))
        if not sede or sede.institution_id != institution_id:
            raise ValidationError("La sede no existe")
        return sede.sede_id

    def _target_scope(self, ctx: RequestContext, target: User) -> ScopeDescriptor:
        if target.role != Role.STUDENT:
            return self._resolver.staff_scope(ctx.user)
        groups_scope = self._resolver.groups_scope(ctx.user)
        groups = self._groups.list_in_scope(groups_scope) if not groups_scope.denied else []
        return self._resolver.students_scope(ctx.user, groups)

    def update_profile(
        self,
        ctx: RequestContext,
        *,
        user_id: int,
        name: str,
        phone_number: Optional[str] = None,
        level: Optional[StudentLevel] = None,
        sede_id: Optional[int] = None,
    ) -> User:
        """Edit name, phone, level and sede of an identity in the caller's scope.

        The full profile is replaced: a missing sede or level clears it. A
        supervisor's own sede link stays under sede management.
        """

        principal = self._resolver.principal(ctx.user)
        if not isinstance(principal, (AdminPrincipal, SupervisorPrincipal)):
            raise AuthorizationError("No tienes permiso para editar usuarios")

        target = self._users.get_by_id(int(user_id))
        if not target or not target.is_active or target.institution_id != principal.institution_id:
            raise ValidationError("El usuario no existe")

        scope = self._target_scope(ctx, target)
        self._resolver.require_writable(scope)
        self._resolver.ensure_allowed(scope, target, message="Usuario fuera de tu alcance")

        if isinstance(principal, SupervisorPrincipal):
            if target.role not in SUPERVISOR_CREATABLE_ROLES:
                raise AuthorizationError("Un supervisor solo puede editar docentes, caja o estudiantes")
            if target.role.carries_sede:
                sede_id = principal.sede_id

        if target.role == Role.SUPERVISOR:
            sede_id = target.sede_id
        else:
            sede_id = self._checked_sede(principal.institution_id, target.role, sede_id)

        self._users.update_profile(
            target.user_id,
            name=require_non_empty(name, "Nombre"),
            phone_number=(phone_number or "").strip() or None,
            level=level if target.role == Role.STUDENT else None,
            sede_id=sede_id,
        )
        logger.info("profile updated: user_id=%s by=%s", target.user_id, ctx.user.user_id)
        return self._users.get_by_id(target.user_id)

    def _require_admin_target(self, ctx: RequestContext, user_id: int) -> User:
        principal = self._resolver.principal(ctx.user)
        if not isinstance(principal, AdminPrincipal):
            raise AuthorizationError("No tienes permiso")
        if int(user_id) == ctx.user.user_id:
            raise ValidationError("No puedes modificar tu propia cuenta desde aquí")

        target = self._users.get_by_id(int(user_id))
        if not target or target.institution_id != principal.institution_id:
            raise ValidationError("El usuario no existe")
        return target

    def change_role(self, ctx: RequestContext, *, user_id: int, role: Role) -> None:
        """Only an admin can change a role; the sede link is dropped when needed."""

        target = self._require_admin_target(ctx, user_id)
        if target.role == role:
            return

        sede_id = target.sede_id if role.carries_sede and role != Role.SUPERVISOR else None
        self._users.update_role(target.user_id, role=role, sede_id=sede_id)
        logger.info("role changed: user_id=%s %s -> %s", target.user_id, target.role.value, role.value)

    def delete_user(self, ctx: RequestContext, *, user_id: int) -> None:
        target = self._require_admin_target(ctx, user_id)
        if not self._users.deactivate_and_unassign(target.user_id):
            raise ValidationError("No se pudo eliminar el usuario")
        logger.info("user deactivated: user_id=%s by=%s", target.user_id, ctx.user.user_id)
