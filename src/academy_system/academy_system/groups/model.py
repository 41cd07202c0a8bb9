from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from ..core.enums import GroupType


@dataclass(frozen=True)
class Group:
    """Entidad de dominio: grupo de estudiantes.

    ``student_ids`` is membership only; the students themselves are users.
    """

    group_id: int
    name: str
    institution_id: int
    group_type: GroupType
    start_date: date
    end_date: Optional[date] = None
    sede_id: Optional[int] = None
    teacher_id: Optional[int] = None
    student_ids: frozenset[int] = field(default_factory=frozenset)
