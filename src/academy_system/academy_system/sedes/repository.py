from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Sede, SedeAssignmentPlan


class SedeRepository(Protocol):
    def list_for_institution(self, institution_id: int) -> Sequence[Sede]:
        raise NotImplementedError

    def get_by_id(self, sede_id: int) -> Optional[Sede]:
        raise NotImplementedError

    def find_by_supervisor(self, supervisor_id: int) -> Optional[Sede]:
        raise NotImplementedError

    def save_assignment(self, plan: SedeAssignmentPlan) -> int:
        """Apply every write of the plan atomically; returns the sede id."""

        raise NotImplementedError

    def delete_cascade(self, sede_id: int) -> bool:
        raise NotImplementedError
