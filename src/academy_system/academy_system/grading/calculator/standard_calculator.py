from __future__ import annotations

import math
from typing import Any, Mapping, Optional, Sequence

from ...core.constants import MAX_ACCUMULATED_ACTIVITIES
from ...core.enums import GradeStatus
from ..model import ActivityScore, GradingConfiguration, PartialScores, StudentGradeSummary, partial_key
from .base import GradeCalculator


def score_value(value: Any) -> Optional[float]:
    """A usable score, or None for anything malformed (text, bool, NaN, negative)."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value) or value < 0:
        return None
    return float(value)


class StandardGradeCalculator(GradeCalculator):
    """Standard rule: capped sum of activities plus exam; final = mean of all partials."""

    def accumulated_total(self, activities: Sequence[ActivityScore], config: GradingConfiguration) -> Optional[float]:
        scores = [score_value(a.score) for a in list(activities or ())[:MAX_ACCUMULATED_ACTIVITIES]]
        scores = [s for s in scores if s is not None]
        if not scores:
            return None
        return min(sum(scores), float(config.max_total_accumulated_score))

    def partial_total(self, scores: Optional[PartialScores], config: GradingConfiguration) -> Optional[float]:
        if scores is None:
            return None
        accumulated = self.accumulated_total(scores.accumulated_activities, config)
        exam = score_value(scores.exam.score) if scores.exam else None
        if accumulated is None and exam is None:
            return None
        total = (accumulated or 0.0) + (exam or 0.0)
        return min(total, float(config.max_partial_total))

    def final_grade(self, partial_totals: Sequence[Optional[float]], config: GradingConfiguration) -> Optional[float]:
        expected = int(config.number_of_partials)
        totals = list(partial_totals)[:expected]
        if len(totals) < expected or any(t is None for t in totals):
            return None
        return sum(totals) / expected

    def classify(self, total: Optional[float], config: GradingConfiguration) -> GradeStatus:
        if total is None:
            return GradeStatus.NOT_GRADABLE
        return GradeStatus.PASSING if total >= config.passing_grade else GradeStatus.FAILING

    def summarize(
        self,
        *,
        student_id: int,
        name: str,
        grades: Mapping[str, PartialScores],
        config: GradingConfiguration,
    ) -> StudentGradeSummary:
        accumulated: list[Optional[float]] = []
        partials: list[Optional[float]] = []
        for number in range(1, int(config.number_of_partials) + 1):
            scores = (grades or {}).get(partial_key(number))
            accumulated.append(self.accumulated_total(scores.accumulated_activities, config) if scores else None)
            partials.append(self.partial_total(scores, config))

        final = self.final_grade(partials, config)
        return StudentGradeSummary(
            student_id=student_id,
            name=name,
            accumulated_totals=tuple(accumulated),
            partial_totals=tuple(partials),
            final_grade=final,
            status=self.classify(final, config),
            partial_statuses=tuple(self.classify(p, config) for p in partials),
        )


def format_score(value: Optional[float], *, final: bool = False) -> str:
    """Render a total for display; missing data is "N/A", never 0."""

    if value is None:
        return "N/A"
    if final:
        return f"{value:.2f}"
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"
