from __future__ import annotations

from datetime import date
from typing import Iterable, Optional, Protocol, Sequence

from ..access.scope import ScopeDescriptor
from ..core.enums import GroupType
from .model import Group


class GroupRepository(Protocol):
    """Groups with their membership already attached."""

    def list_in_scope(self, scope: ScopeDescriptor) -> Sequence[Group]:
        raise NotImplementedError

    def get_by_id(self, group_id: int) -> Optional[Group]:
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        institution_id: int,
        group_type: GroupType,
        start_date: date,
        end_date: Optional[date],
        sede_id: Optional[int],
        teacher_id: Optional[int],
    ) -> int:
        raise NotImplementedError

    def update(
        self,
        group_id: int,
        *,
        name: str,
        group_type: GroupType,
        start_date: date,
        end_date: Optional[date],
        sede_id: Optional[int],
    ) -> bool:
        raise NotImplementedError

    def set_teacher(self, group_id: int, teacher_id: Optional[int]) -> bool:
        raise NotImplementedError

    def set_students(self, group_id: int, student_ids: Iterable[int]) -> None:
        """Replace the membership list in one transaction."""

        raise NotImplementedError

    def delete(self, group_id: int) -> bool:
        raise NotImplementedError
