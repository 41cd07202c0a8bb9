from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..access.principal import AdminPrincipal
from ..access.resolver import AccessScopeResolver
from ..common.validators import require_non_empty
from ..core.context import RequestContext
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..users.repository import UserRepository
from .model import Sede, SedeAssignmentPlan
from .repository import SedeRepository

logger = logging.getLogger(__name__)


class SedeService:
    """Sede management. Every write is restricted to admins."""

    def __init__(self, sedes: SedeRepository, users: UserRepository, resolver: AccessScopeResolver):
        self._sedes = sedes
        self._users = users
        self._resolver = resolver

    def _admin(self, ctx: RequestContext) -> AdminPrincipal:
        principal = self._resolver.principal(ctx.user)
        if not isinstance(principal, AdminPrincipal):
            raise AuthorizationError("Solo un administrador puede gestionar sedes")
        return principal

    def list_sedes(self, ctx: RequestContext) -> Sequence[Sede]:
        principal = self._resolver.principal(ctx.user)
        return self._sedes.list_for_institution(principal.institution_id)

    def plan_assignment(
        self,
        *,
        institution_id: int,
        name: str,
        supervisor_id: Optional[int],
        current: Optional[Sede] = None,
    ) -> SedeAssignmentPlan:
        """Work out every write needed so a supervisor leads at most one sede.

        - the new supervisor's previous sede (if any) loses its supervisor
        - a supervisor being replaced here loses their sede link
        """

        released: list[int] = []
        cleared: list[int] = []

        if supervisor_id is not None:
            previous = self._sedes.find_by_supervisor(supervisor_id)
            if previous and (current is None or previous.sede_id != current.sede_id):
                released.append(previous.sede_id)

        if current and current.supervisor_id is not None and current.supervisor_id != supervisor_id:
            cleared.append(current.supervisor_id)

        return SedeAssignmentPlan(
            name=name,
            institution_id=institution_id,
            supervisor_id=supervisor_id,
            sede_id=current.sede_id if current else None,
            released_sede_ids=tuple(released),
            cleared_user_ids=tuple(cleared),
        )

    def save_sede(
        self,
        ctx: RequestContext,
        *,
        name: str,
        supervisor_id: Optional[int] = None,
        sede_id: Optional[int] = None,
    ) -> int:
        """Create (no ``sede_id``) or update a sede and its supervisor link."""

        principal = self._admin(ctx)
        name = require_non_empty(name, "Nombre de la sede")

        current = None
        if sede_id is not None:
            current = self._sedes.get_by_id(int(sede_id))
            if not current or current.institution_id != principal.institution_id:
                raise ValidationError("La sede no existe")

        if supervisor_id is not None:
            supervisor = self._users.get_by_id(int(supervisor_id))
            if (
                not supervisor
                or not supervisor.is_active
                or supervisor.role != Role.SUPERVISOR
                or supervisor.institution_id != principal.institution_id
            ):
                raise ValidationError("El supervisor seleccionado no es válido")
            supervisor_id = supervisor.user_id

        plan = self.plan_assignment(
            institution_id=principal.institution_id,
            name=name,
            supervisor_id=supervisor_id,
            current=current,
        )
        saved_id = self._sedes.save_assignment(plan)
        logger.info(
            "sede saved: sede_id=%s supervisor_id=%s released=%s cleared=%s",
            saved_id, supervisor_id, plan.released_sede_ids, plan.cleared_user_ids,
        )
        return saved_id

    def delete_sede(self, ctx: RequestContext, *, sede_id: int) -> None:
        principal = self._admin(ctx)
        sede = self._sedes.get_by_id(int(sede_id))
        if not sede or sede.institution_id != principal.institution_id:
            raise ValidationError("La sede no existe")
        self._sedes.delete_cascade(sede.sede_id)
        logger.info("sede deleted: sede_id=%s", sede.sede_id)
