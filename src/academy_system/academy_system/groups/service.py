from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Optional, Sequence

from ..access.principal import AdminPrincipal, SupervisorPrincipal
from ..access.resolver import AccessScopeResolver
from ..common.validators import require_non_empty
from ..core.context import RequestContext
from ..core.enums import GroupType, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..sedes.repository import SedeRepository
from ..users.repository import UserRepository
from .model import Group
from .repository import GroupRepository

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(
        self,
        groups: GroupRepository,
        users: UserRepository,
        sedes: SedeRepository,
        resolver: AccessScopeResolver,
    ):
        self._groups = groups
        self._users = users
        self._sedes = sedes
        self._resolver = resolver

    def list_groups(self, ctx: RequestContext) -> Sequence[Group]:
        scope = self._resolver.groups_scope(ctx.user)
        if scope.denied:
            raise AuthorizationError("No tienes permiso para ver grupos")
        return self._groups.list_in_scope(scope)

    def get_group(self, ctx: RequestContext, group_id: int, *, for_write: bool = False) -> Group:
        scope = self._resolver.groups_scope(ctx.user)
        if for_write:
            self._resolver.require_writable(scope)
        group = self._groups.get_by_id(int(group_id))
        self._resolver.ensure_allowed(scope, group, message="Grupo fuera de tu alcance")
        return group

    def _managing_principal(self, ctx: RequestContext):
        principal = self._resolver.principal(ctx.user)
        if not isinstance(principal, (AdminPrincipal, SupervisorPrincipal)):
            raise AuthorizationError("Solo administradores y supervisores gestionan grupos")
        return principal

    def _check_sede(self, institution_id: int, sede_id: Optional[int]) -> Optional[int]:
        if sede_id is None:
            return None
        sede = self._sedes.get_by_id(int(sede_id))
        if not sede or sede.institution_id != institution_id:
            raise ValidationError("La sede no existe")
        return sede.sede_id

    @staticmethod
    def _check_dates(start_date: date, end_date: Optional[date]) -> None:
        if end_date is not None and end_date < start_date:
            raise ValidationError("La fecha de fin no puede ser anterior a la fecha de inicio")

    def _check_teacher(self, principal, teacher_id: Optional[int]) -> Optional[int]:
        if teacher_id is None:
            return None
        teacher = self._users.get_by_id(int(teacher_id))
        if (
            not teacher
            or not teacher.is_active
            or teacher.role != Role.TEACHER
            or teacher.institution_id != principal.institution_id
        ):
            raise ValidationError("El docente seleccionado no es válido")
        if isinstance(principal, SupervisorPrincipal) and teacher.sede_id != principal.sede_id:
            raise AuthorizationError("El docente no pertenece a tu sede")
        return teacher.user_id

    def create_group(
        self,
        ctx: RequestContext,
        *,
        name: str,
        group_type: GroupType,
        start_date: date,
        end_date: Optional[date] = None,
        sede_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
    ) -> int:
        principal = self._managing_principal(ctx)
        name = require_non_empty(name, "Nombre del grupo")
        self._check_dates(start_date, end_date)

        if isinstance(principal, SupervisorPrincipal):
            sede_id = principal.sede_id
        sede_id = self._check_sede(principal.institution_id, sede_id)
        teacher_id = self._check_teacher(principal, teacher_id)

        group_id = self._groups.create(
            name=name,
            institution_id=principal.institution_id,
            group_type=group_type,
            start_date=start_date,
            end_date=end_date,
            sede_id=sede_id,
            teacher_id=teacher_id,
        )
        logger.info("group created: group_id=%s by=%s", group_id, ctx.user.user_id)
        return group_id

    def update_group(
        self,
        ctx: RequestContext,
        *,
        group_id: int,
        name: str,
        group_type: GroupType,
        start_date: date,
        end_date: Optional[date] = None,
        sede_id: Optional[int] = None,
    ) -> None:
        principal = self._managing_principal(ctx)
        group = self.get_group(ctx, group_id, for_write=True)
        name = require_non_empty(name, "Nombre del grupo")
        self._check_dates(start_date, end_date)

        if isinstance(principal, SupervisorPrincipal):
            sede_id = principal.sede_id
        sede_id = self._check_sede(principal.institution_id, sede_id)

        self._groups.update(
            group.group_id,
            name=name,
            group_type=group_type,
            start_date=start_date,
            end_date=end_date,
            sede_id=sede_id,
        )

    def assign_teacher(self, ctx: RequestContext, *, group_id: int, teacher_id: Optional[int]) -> None:
        principal = self._managing_principal(ctx)
        group = self.get_group(ctx, group_id, for_write=True)
        self._groups.set_teacher(group.group_id, self._check_teacher(principal, teacher_id))
        logger.info("group teacher set: group_id=%s teacher_id=%s", group.group_id, teacher_id)

    def assign_students(self, ctx: RequestContext, *, group_id: int, student_ids: Iterable[int]) -> None:
        """Replace the group's members; teachers may do this for their own groups."""

        group = self.get_group(ctx, group_id, for_write=True)
        wanted = {int(s) for s in student_ids}

        found = {u.user_id: u for u in self._users.list_by_ids(wanted)}
        for student_id in sorted(wanted):
            student = found.get(student_id)
            if (
                not student
                or not student.is_active
                or student.role != Role.STUDENT
                or student.institution_id != group.institution_id
            ):
                raise ValidationError(f"El estudiante {student_id} no es válido")

        self._groups.set_students(group.group_id, wanted)
        logger.info("group members set: group_id=%s count=%s", group.group_id, len(wanted))

    def delete_group(self, ctx: RequestContext, *, group_id: int) -> None:
        principal = self._resolver.principal(ctx.user)
        if not isinstance(principal, AdminPrincipal):
            raise AuthorizationError("Solo un administrador puede eliminar grupos")
        group = self.get_group(ctx, group_id, for_write=True)
        self._groups.delete(group.group_id)
        logger.info("group deleted: group_id=%s", group.group_id)
