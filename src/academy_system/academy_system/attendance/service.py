from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..access.principal import AdminPrincipal, StudentPrincipal, SupervisorPrincipal, TeacherPrincipal
from ..access.resolver import AccessScopeResolver
from ..common.datetime_utils import now_local
from ..core.constants import (
    DEFAULT_HISTORY_LIMIT,
    DEFAULT_LATE_GRACE_MINUTES,
    DEFAULT_REPORT_DAYS,
    STAFF_QR_CODE_USED,
    STAFF_QR_PAYLOAD_TYPE,
)
from ..core.context import RequestContext
from ..core.enums import AttendanceStatus
from ..core.exceptions import AuthorizationError, ValidationError
from ..groups.model import Group
from ..groups.repository import GroupRepository
from ..users.repository import UserRepository
from .factory import CheckInStrategyFactory
from .model import AttendanceRecord, Session, StaffCheckIn
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

STAFF_CHECK_IN_PRINCIPALS = (AdminPrincipal, SupervisorPrincipal, TeacherPrincipal)


@dataclass(frozen=True)
class AttendanceEntry:
    """One line of a manual attendance sheet."""

    user_id: int
    status: AttendanceStatus
    observation: Optional[str] = None


class AttendanceService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        groups: GroupRepository,
        resolver: AccessScopeResolver,
        *,
        strategy_factory: Optional[CheckInStrategyFactory] = None,
        grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
    ):
        self._attendance = attendance
        self._users = users
        self._groups = groups
        self._resolver = resolver
        self._factory = strategy_factory or CheckInStrategyFactory()
        self._grace_minutes = int(grace_minutes)

    def _visible_groups(self, ctx: RequestContext) -> Sequence[Group]:
        scope = self._resolver.groups_scope(ctx.user)
        return self._groups.list_in_scope(scope) if not scope.denied else []

    def _sessions_scope(self, ctx: RequestContext):
        return self._resolver.sessions_scope(ctx.user, self._visible_groups(ctx))

    def list_sessions(self, ctx: RequestContext, *, group_id: Optional[int] = None) -> Sequence[Session]:
        scope = self._sessions_scope(ctx)
        if scope.denied:
            raise AuthorizationError("No tienes permiso para ver sesiones")
        return self._attendance.list_sessions(scope, group_id=group_id)

    def get_session(self, ctx: RequestContext, session_id: int, *, for_write: bool = False) -> Session:
        scope = self._sessions_scope(ctx)
        if for_write:
            self._resolver.require_writable(scope)
        session = self._attendance.get_session(int(session_id))
        self._resolver.ensure_allowed(scope, session, message="Sesión fuera de tu alcance")
        return session

    def create_session(
        self,
        ctx: RequestContext,
        *,
        group_id: int,
        session_date: date,
        session_time: time,
    ) -> int:
        groups = self._visible_groups(ctx)
        scope = self._resolver.sessions_scope(ctx.user, groups)
        self._resolver.require_writable(scope)

        group = next((g for g in groups if g.group_id == int(group_id)), None)
        if group is None or (scope.group_ids is not None and group.group_id not in scope.group_ids):
            raise AuthorizationError("Grupo fuera de tu alcance")

        session_id = self._attendance.create_session(
            group_id=group.group_id,
            institution_id=group.institution_id,
            session_date=session_date,
            session_time=session_time,
            qr_code_value=uuid.uuid4().hex,
        )
        logger.info("session created: session_id=%s group_id=%s by=%s", session_id, group.group_id, ctx.user.user_id)
        return session_id

    def list_session_records(self, ctx: RequestContext, *, session_id: int) -> Sequence[AttendanceRecord]:
        session = self.get_session(ctx, session_id)
        records = self._attendance.list_records(session.session_id)
        if isinstance(self._resolver.principal(ctx.user), StudentPrincipal):
            records = [r for r in records if r.user_id == ctx.user.user_id]
        return records

    def log_attendance(
        self,
        ctx: RequestContext,
        *,
        session_id: int,
        entries: Sequence[AttendanceEntry],
        now: Optional[datetime] = None,
    ) -> int:
        """Manual attendance sheet; observations are kept only for absences."""

        now = now or now_local()
        session = self.get_session(ctx, session_id, for_write=True)
        group = self._groups.get_by_id(session.group_id)
        members = group.student_ids if group else frozenset()

        records: List[AttendanceRecord] = []
        for entry in entries:
            if int(entry.user_id) not in members:
                raise ValidationError(f"El estudiante {entry.user_id} no pertenece al grupo")
            observation = (entry.observation or "").strip() or None
            records.append(
                AttendanceRecord(
                    record_id=0,
                    session_id=session.session_id,
                    user_id=int(entry.user_id),
                    status=entry.status,
                    timestamp=now,
                    institution_id=session.institution_id,
                    observation=observation if entry.status == AttendanceStatus.ABSENT else None,
                )
            )

        self._attendance.upsert_records(records)
        logger.info("attendance logged: session_id=%s entries=%s by=%s", session.session_id, len(records), ctx.user.user_id)
        return len(records)

    def student_qr_check_in(
        self,
        ctx: RequestContext,
        *,
        code: str,
        now: Optional[datetime] = None,
    ) -> AttendanceRecord:
        now = now or now_local()
        principal = self._resolver.principal(ctx.user)
        if not isinstance(principal, StudentPrincipal):
            raise AuthorizationError("Solo los estudiantes registran asistencia con este código")

        code = str(code or "").strip()
        session = self._attendance.get_session_by_code(code) if code else None
        if not session or session.institution_id != principal.institution_id:
            raise ValidationError("Código QR no válido")

        group = self._groups.get_by_id(session.group_id)
        if not group or principal.user_id not in group.student_ids:
            raise AuthorizationError("No perteneces al grupo de esta sesión")
        if self._attendance.get_record(session.session_id, principal.user_id):
            raise ValidationError("Ya registraste tu asistencia en esta sesión")

        strategy = self._factory.for_check_in(now=now, session=session, grace_minutes=self._grace_minutes)
        decision = strategy.decide(now=now, session=session, grace_minutes=self._grace_minutes)

        record_id = self._attendance.create_record(
            session_id=session.session_id,
            user_id=principal.user_id,
            institution_id=session.institution_id,
            status=decision.status,
            timestamp=now,
            observation=decision.observation,
        )
        logger.info("student check-in: session_id=%s user_id=%s status=%s", session.session_id, principal.user_id, decision.status.value)
        return AttendanceRecord(
            record_id=record_id,
            session_id=session.session_id,
            user_id=principal.user_id,
            status=decision.status,
            timestamp=now,
            institution_id=session.institution_id,
            observation=decision.observation,
        )

    def staff_qr_payload(
        self,
        ctx: RequestContext,
        *,
        sede_id: Optional[int] = None,
        today: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Content of the daily staff check-in code shown at a sede."""

        principal = self._resolver.principal(ctx.user)
        if isinstance(principal, SupervisorPrincipal):
            sede_id = principal.sede_id
        elif not isinstance(principal, AdminPrincipal):
            raise AuthorizationError("No tienes permiso para generar el código del personal")

        today = today or now_local().date()
        return {
            "type": STAFF_QR_PAYLOAD_TYPE,
            "institutionId": principal.institution_id,
            "sedeId": sede_id,
            "date": today.isoformat(),
        }

    @staticmethod
    def _parse_payload(payload: Union[str, Mapping[str, Any]]) -> Mapping[str, Any]:
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except ValueError:
                raise ValidationError("Código QR no válido")
        if not isinstance(payload, Mapping) or payload.get("type") != STAFF_QR_PAYLOAD_TYPE:
            raise ValidationError("Código QR no válido")
        return payload

    def staff_qr_check_in(
        self,
        ctx: RequestContext,
        *,
        payload: Union[str, Mapping[str, Any]],
        now: Optional[datetime] = None,
    ) -> StaffCheckIn:
        """One check-in per staff member and day, from today's code of their institution."""

        now = now or now_local()
        principal = self._resolver.principal(ctx.user)
        if not isinstance(principal, STAFF_CHECK_IN_PRINCIPALS):
            raise AuthorizationError("Solo el personal docente y administrativo registra llegada")

        data = self._parse_payload(payload)
        if data.get("institutionId") != principal.institution_id:
            raise ValidationError("El código QR pertenece a otra institución")
        if data.get("date") != now.date().isoformat():
            raise ValidationError("El código QR ha expirado")

        qr_sede = data.get("sedeId")
        if qr_sede is not None and ctx.user.sede_id is not None and qr_sede != ctx.user.sede_id:
            raise ValidationError("El código QR pertenece a otra sede")

        if self._attendance.get_staff_checkin(principal.user_id, now.date()):
            raise ValidationError("Ya registraste tu llegada hoy")

        sede_id = qr_sede if qr_sede is not None else ctx.user.sede_id
        checkin_id = self._attendance.create_staff_checkin(
            user_id=principal.user_id,
            user_name=ctx.user.name,
            institution_id=principal.institution_id,
            sede_id=sede_id,
            check_date=now.date(),
            timestamp=now,
            code_used=STAFF_QR_CODE_USED,
        )
        logger.info("staff check-in: user_id=%s sede_id=%s", principal.user_id, sede_id)
        return StaffCheckIn(
            checkin_id=checkin_id,
            user_id=principal.user_id,
            user_name=ctx.user.name,
            institution_id=principal.institution_id,
            sede_id=sede_id,
            check_date=now.date(),
            timestamp=now,
            code_used=STAFF_QR_CODE_USED,
        )

    def staff_attendance_report(
        self,
        ctx: RequestContext,
        *,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> Sequence[StaffCheckIn]:
        scope = self._resolver.staff_scope(ctx.user)
        if scope.denied:
            raise AuthorizationError("No tienes permiso para ver la asistencia del personal")

        end = end or now_local().date()
        start = start or end - timedelta(days=DEFAULT_REPORT_DAYS - 1)
        if start > end:
            raise ValidationError("La fecha de inicio no puede ser posterior a la fecha de fin")

        staff = self._users.list_in_scope(scope)
        return self._attendance.list_staff_checkins(
            institution_id=scope.institution_id,
            user_ids=[u.user_id for u in staff],
            start=start,
            end=end,
        )

    def my_attendance(self, ctx: RequestContext, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        principal = self._resolver.principal(ctx.user)
        return self._attendance.list_records_for_user(principal.user_id, limit=limit)

    def my_check_ins(self, ctx: RequestContext, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[StaffCheckIn]:
        principal = self._resolver.principal(ctx.user)
        return self._attendance.list_checkins_for_user(principal.user_id, limit=limit)
