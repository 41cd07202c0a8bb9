from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..access.resolver import AccessScopeResolver
from ..access.scope import ScopeDescriptor
from ..common.validators import parse_score_input
from ..core.constants import MAX_ACCUMULATED_ACTIVITIES
from ..core.context import RequestContext
from ..core.enums import GradeStatus
from ..core.exceptions import AuthorizationError, ValidationError
from ..groups.repository import GroupRepository
from ..users.model import User
from ..users.repository import UserRepository
from .calculator.base import GradeCalculator
from .calculator.standard_calculator import StandardGradeCalculator, score_value
from .model import ActivityScore, ExamScore, GradingConfiguration, PartialScores, StudentGradeSummary, partial_key
from .repository import GradeRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartialReportRow:
    """One student in one partial: raw activity scores plus computed totals."""

    student_id: int
    name: str
    partial_number: int
    activity_scores: tuple[Optional[float], ...]
    exam_score: Optional[float]
    accumulated_total: Optional[float]
    partial_total: Optional[float]
    status: GradeStatus


@dataclass(frozen=True)
class GradeReport:
    config: GradingConfiguration
    rows: List[PartialReportRow]
    summaries: List[StudentGradeSummary]


class GradeReportService:
    def __init__(
        self,
        grades: GradeRepository,
        users: UserRepository,
        groups: GroupRepository,
        resolver: AccessScopeResolver,
        *,
        calculator: Optional[GradeCalculator] = None,
    ):
        self._grades = grades
        self._users = users
        self._groups = groups
        self._resolver = resolver
        self._calculator = calculator or StandardGradeCalculator()

    def _students_scope(self, ctx: RequestContext):
        groups_scope = self._resolver.groups_scope(ctx.user)
        groups = self._groups.list_in_scope(groups_scope) if not groups_scope.denied else []
        scope = self._resolver.students_scope(ctx.user, groups)
        if scope.denied:
            raise AuthorizationError("No tienes permiso para ver calificaciones")
        return scope, groups

    def _scoped_student(self, scope: ScopeDescriptor, student_id: int) -> User:
        student = self._users.get_by_id(int(student_id))
        self._resolver.ensure_allowed(scope, student, message="Estudiante fuera de tu alcance")
        if not student.is_active:
            raise ValidationError("El estudiante está inactivo")
        return student

    def build_partial_report(
        self,
        ctx: RequestContext,
        *,
        group_id: Optional[int] = None,
        student_id: Optional[int] = None,
    ) -> GradeReport:
        """Rows per student and partial plus a final summary per student."""

        config = ctx.grading_config
        scope, groups = self._students_scope(ctx)
        students: Sequence[User] = self._users.list_in_scope(scope)

        if group_id is not None:
            group = next((g for g in groups if g.group_id == int(group_id)), None)
            if group is None:
                raise AuthorizationError("Grupo fuera de tu alcance")
            students = [s for s in students if s.user_id in group.student_ids]
        if student_id is not None:
            students = [s for s in students if s.user_id == int(student_id)]

        all_grades = self._grades.list_grades([s.user_id for s in students])
        rows: List[PartialReportRow] = []
        summaries: List[StudentGradeSummary] = []

        for student in students:
            grades = all_grades.get(student.user_id, {})
            summary = self._calculator.summarize(
                student_id=student.user_id, name=student.name, grades=grades, config=config
            )
            summaries.append(summary)

            for number in range(1, config.number_of_partials + 1):
                scores = grades.get(partial_key(number)) or PartialScores()
                activities = list(scores.accumulated_activities[:MAX_ACCUMULATED_ACTIVITIES])
                activities += [ActivityScore()] * (MAX_ACCUMULATED_ACTIVITIES - len(activities))
                rows.append(
                    PartialReportRow(
                        student_id=student.user_id,
                        name=student.name,
                        partial_number=number,
                        activity_scores=tuple(score_value(a.score) for a in activities),
                        exam_score=score_value(scores.exam.score) if scores.exam else None,
                        accumulated_total=summary.accumulated_totals[number - 1],
                        partial_total=summary.partial_totals[number - 1],
                        status=summary.partial_statuses[number - 1],
                    )
                )

        return GradeReport(config=config, rows=rows, summaries=summaries)

    def get_student_grades(self, ctx: RequestContext, *, student_id: int) -> Dict[str, PartialScores]:
        scope, _ = self._students_scope(ctx)
        student = self._scoped_student(scope, student_id)
        return self._grades.get_grades(student.user_id)

    def _parse_partial(self, label: str, data: Any, config: GradingConfiguration) -> PartialScores:
        if not isinstance(data, Mapping):
            raise ValidationError(f"{label}: formato no válido")

        raw_activities = data.get("accumulatedActivities") or []
        if not isinstance(raw_activities, (list, tuple)):
            raise ValidationError(f"{label}: formato no válido")
        if len(raw_activities) > MAX_ACCUMULATED_ACTIVITIES:
            raise ValidationError(f"{label}: máximo {MAX_ACCUMULATED_ACTIVITIES} actividades acumuladas")

        activities = []
        for index, raw in enumerate(raw_activities, start=1):
            raw = raw if isinstance(raw, Mapping) else {}
            activities.append(
                ActivityScore(
                    name=(str(raw.get("name") or "").strip() or None),
                    score=parse_score_input(
                        raw.get("score"),
                        f"{label}, actividad {index}",
                        max_score=config.max_individual_activity_score,
                    ),
                )
            )

        exam = None
        raw_exam = data.get("exam")
        if isinstance(raw_exam, Mapping):
            exam = ExamScore(
                name=(str(raw_exam.get("name") or "").strip() or None),
                score=parse_score_input(raw_exam.get("score"), f"{label}, examen", max_score=config.max_exam_score),
            )
        elif raw_exam is not None:
            raise ValidationError(f"{label}: formato no válido")

        return PartialScores(accumulated_activities=tuple(activities), exam=exam)

    def save_grades(
        self,
        ctx: RequestContext,
        *,
        student_id: int,
        partials: Mapping[str, Any],
    ) -> StudentGradeSummary:
        """Validate and store the given partials; concurrent edits are last-write-wins."""

        config = ctx.grading_config
        scope, _ = self._students_scope(ctx)
        self._resolver.require_writable(scope)
        student = self._scoped_student(scope, student_id)

        allowed = {partial_key(n): n for n in range(1, config.number_of_partials + 1)}
        parsed: Dict[str, PartialScores] = {}
        for key, data in (partials or {}).items():
            if key not in allowed:
                raise ValidationError(f"Parcial desconocido: {key}")
            parsed[key] = self._parse_partial(f"Parcial {allowed[key]}", data, config)
        if not parsed:
            raise ValidationError("No hay calificaciones para guardar")

        self._grades.save_grades(student.user_id, parsed)
        logger.info(
            "grades saved: student_id=%s partials=%s by=%s", student.user_id, sorted(parsed), ctx.user.user_id
        )

        merged = dict(self._grades.get_grades(student.user_id))
        merged.update(parsed)
        return self._calculator.summarize(student_id=student.user_id, name=student.name, grades=merged, config=config)
