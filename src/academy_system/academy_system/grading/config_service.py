from __future__ import annotations

import logging
import math
from typing import Any, Dict, Mapping

from ..access.principal import AdminPrincipal
from ..access.resolver import AccessScopeResolver
from ..core.constants import ALLOWED_NUMBER_OF_PARTIALS
from ..core.context import RequestContext
from ..core.exceptions import AuthorizationError, ValidationError
from .model import DEFAULT_GRADING_CONFIG, GradingConfiguration
from .repository import GradingConfigRepository

logger = logging.getLogger(__name__)

_LABELS = {
    "passingGrade": "Nota mínima de aprobación",
    "maxIndividualActivityScore": "Puntaje máximo por actividad",
    "maxTotalAccumulatedScore": "Puntaje máximo acumulado",
    "maxExamScore": "Puntaje máximo del examen",
}


def _strict_number(data: Mapping[str, Any], key: str) -> float:
    value = data.get(key)
    if isinstance(value, str) and value.strip():
        try:
            value = float(value)
        except ValueError:
            raise ValidationError(f"{_LABELS[key]}: valor no numérico")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{_LABELS[key]}: valor no numérico")
    if math.isnan(value) or math.isinf(value) or value <= 0:
        raise ValidationError(f"{_LABELS[key]} debe ser mayor que 0")
    return float(value)


class GradingConfigService:
    """Tenant grading settings, read once and cached.

    The cache lives as long as this service; the web layer additionally keeps
    the loaded configuration in the login session.
    """

    def __init__(self, configs: GradingConfigRepository, resolver: AccessScopeResolver):
        self._configs = configs
        self._resolver = resolver
        self._cache: Dict[int, GradingConfiguration] = {}

    def load(self, institution_id: int) -> GradingConfiguration:
        institution_id = int(institution_id)
        cached = self._cache.get(institution_id)
        if cached is not None:
            return cached

        try:
            stored = self._configs.get_config(institution_id)
        except Exception:
            # Grading must still render; fall back without caching so a later call can retry.
            logger.warning("grading config unavailable for institution_id=%s; using defaults", institution_id, exc_info=True)
            return DEFAULT_GRADING_CONFIG

        config = GradingConfiguration.from_mapping(stored)
        if stored is None:
            logger.info("no grading config stored for institution_id=%s; using defaults", institution_id)
        self._cache[institution_id] = config
        return config

    def invalidate(self, institution_id: int) -> None:
        self._cache.pop(int(institution_id), None)

    def validate(self, data: Mapping[str, Any]) -> GradingConfiguration:
        """Strict parsing for admin edits; unlike ``from_mapping`` nothing falls back."""

        partials = data.get("numberOfPartials")
        try:
            partials = int(partials) if not isinstance(partials, bool) else None
        except (TypeError, ValueError):
            partials = None
        if partials not in ALLOWED_NUMBER_OF_PARTIALS:
            raise ValidationError("El número de parciales debe ser 1, 2, 3 o 4")

        config = GradingConfiguration(
            number_of_partials=partials,
            passing_grade=_strict_number(data, "passingGrade"),
            max_individual_activity_score=_strict_number(data, "maxIndividualActivityScore"),
            max_total_accumulated_score=_strict_number(data, "maxTotalAccumulatedScore"),
            max_exam_score=_strict_number(data, "maxExamScore"),
        )
        if config.passing_grade > config.max_partial_total:
            raise ValidationError("La nota mínima de aprobación supera el total posible")
        return config

    def update(self, ctx: RequestContext, data: Mapping[str, Any]) -> GradingConfiguration:
        principal = self._resolver.principal(ctx.user)
        if not isinstance(principal, AdminPrincipal):
            raise AuthorizationError("Solo un administrador puede cambiar la configuración de calificaciones")

        config = self.validate(data)
        self._configs.save_config(principal.institution_id, config.to_dict())
        self._cache[principal.institution_id] = config
        logger.info("grading config updated: institution_id=%s by=%s", principal.institution_id, ctx.user.user_id)
        return config
