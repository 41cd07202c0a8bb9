from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Optional, Sequence

from ...core.enums import GradeStatus
from ..model import ActivityScore, GradingConfiguration, PartialScores, StudentGradeSummary


class GradeCalculator(ABC):
    """Calculator interface (Strategy Pattern for grade aggregation).

    Implementations must be pure: same input, same output, no hidden state.
    Missing data propagates as ``None`` and is never an error.
    """

    @abstractmethod
    def accumulated_total(self, activities: Sequence[ActivityScore], config: GradingConfiguration) -> Optional[float]:
        raise NotImplementedError

    @abstractmethod
    def partial_total(self, scores: Optional[PartialScores], config: GradingConfiguration) -> Optional[float]:
        raise NotImplementedError

    @abstractmethod
    def final_grade(self, partial_totals: Sequence[Optional[float]], config: GradingConfiguration) -> Optional[float]:
        raise NotImplementedError

    @abstractmethod
    def classify(self, total: Optional[float], config: GradingConfiguration) -> GradeStatus:
        raise NotImplementedError

    @abstractmethod
    def summarize(
        self,
        *,
        student_id: int,
        name: str,
        grades: Mapping[str, PartialScores],
        config: GradingConfiguration,
    ) -> StudentGradeSummary:
        raise NotImplementedError
