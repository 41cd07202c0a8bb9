from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional, Protocol

from .model import PartialScores


class GradeRepository(Protocol):
    """Per-student grade documents keyed by partial (``partial1``..``partialN``)."""

    def get_grades(self, student_id: int) -> Dict[str, PartialScores]:
        raise NotImplementedError

    def list_grades(self, student_ids: Iterable[int]) -> Dict[int, Dict[str, PartialScores]]:
        raise NotImplementedError

    def save_grades(self, student_id: int, grades: Mapping[str, PartialScores]) -> None:
        """Upsert every partial given; last write wins."""

        raise NotImplementedError


class GradingConfigRepository(Protocol):
    def get_config(self, institution_id: int) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def save_config(self, institution_id: int, payload: Mapping[str, Any]) -> None:
        raise NotImplementedError
