from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..core.constants import (
    ALLOWED_NUMBER_OF_PARTIALS,
    DEFAULT_MAX_EXAM_SCORE,
    DEFAULT_MAX_INDIVIDUAL_ACTIVITY_SCORE,
    DEFAULT_MAX_TOTAL_ACCUMULATED_SCORE,
    DEFAULT_NUMBER_OF_PARTIALS,
    DEFAULT_PASSING_GRADE,
    GRADING_CONFIG_KEY,
)
from ..core.enums import GradeStatus


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (math.isnan(value) or math.isinf(value))


@dataclass(frozen=True)
class ActivityScore:
    name: Optional[str] = None
    score: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> "ActivityScore":
        if not isinstance(data, Mapping):
            return cls()
        return cls(name=data.get("name") or None, score=data.get("score"))

    def to_dict(self) -> dict:
        return {"name": self.name or "", "score": self.score}


@dataclass(frozen=True)
class ExamScore:
    name: Optional[str] = None
    score: Any = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ExamScore"]:
        if not isinstance(data, Mapping):
            return None
        return cls(name=data.get("name") or None, score=data.get("score"))

    def to_dict(self) -> dict:
        return {"name": self.name or "", "score": self.score}


@dataclass(frozen=True)
class PartialScores:
    """Scores of one grading period: accumulated activities plus one exam.

    ``score`` values are stored as entered; anything that is not a number is
    treated as "not entered" by the calculator.
    """

    accumulated_activities: tuple[ActivityScore, ...] = ()
    exam: Optional[ExamScore] = None

    @classmethod
    def from_dict(cls, data: Any) -> "PartialScores":
        if not isinstance(data, Mapping):
            return cls()
        raw_activities = data.get("accumulatedActivities") or []
        if not isinstance(raw_activities, (list, tuple)):
            raw_activities = []
        return cls(
            accumulated_activities=tuple(ActivityScore.from_dict(a) for a in raw_activities),
            exam=ExamScore.from_dict(data.get("exam")),
        )

    def to_dict(self) -> dict:
        return {
            "accumulatedActivities": [a.to_dict() for a in self.accumulated_activities],
            "exam": self.exam.to_dict() if self.exam else None,
        }


def partial_key(number: int) -> str:
    return f"partial{int(number)}"


@dataclass(frozen=True)
class GradingConfiguration:
    """Tenant-wide grading settings."""

    number_of_partials: int = DEFAULT_NUMBER_OF_PARTIALS
    passing_grade: float = DEFAULT_PASSING_GRADE
    max_individual_activity_score: float = DEFAULT_MAX_INDIVIDUAL_ACTIVITY_SCORE
    max_total_accumulated_score: float = DEFAULT_MAX_TOTAL_ACCUMULATED_SCORE
    max_exam_score: float = DEFAULT_MAX_EXAM_SCORE
    config_id: str = GRADING_CONFIG_KEY

    @property
    def max_partial_total(self) -> float:
        return self.max_total_accumulated_score + self.max_exam_score

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "GradingConfiguration":
        """Build from a stored document, falling back to the default per field."""

        if not data:
            return cls()
        defaults = cls()

        def number(key: str, default: float) -> float:
            value = data.get(key)
            return value if _is_number(value) else default

        partials = data.get("numberOfPartials")
        if isinstance(partials, bool) or partials not in ALLOWED_NUMBER_OF_PARTIALS:
            partials = defaults.number_of_partials

        return cls(
            number_of_partials=int(partials),
            passing_grade=number("passingGrade", defaults.passing_grade),
            max_individual_activity_score=number(
                "maxIndividualActivityScore", defaults.max_individual_activity_score
            ),
            max_total_accumulated_score=number("maxTotalAccumulatedScore", defaults.max_total_accumulated_score),
            max_exam_score=number("maxExamScore", defaults.max_exam_score),
            config_id=str(data.get("id") or defaults.config_id),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.config_id,
            "numberOfPartials": self.number_of_partials,
            "passingGrade": self.passing_grade,
            "maxIndividualActivityScore": self.max_individual_activity_score,
            "maxTotalAccumulatedScore": self.max_total_accumulated_score,
            "maxExamScore": self.max_exam_score,
        }


DEFAULT_GRADING_CONFIG = GradingConfiguration()


@dataclass(frozen=True)
class StudentGradeSummary:
    """Read-model: computed totals for one student."""

    student_id: int
    name: str
    accumulated_totals: tuple[Optional[float], ...]
    partial_totals: tuple[Optional[float], ...]
    final_grade: Optional[float]
    status: GradeStatus
    partial_statuses: tuple[GradeStatus, ...] = field(default_factory=tuple)
