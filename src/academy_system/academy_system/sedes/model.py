from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Sede:
    """Branch of an institution; at most one supervisor at a time."""

    sede_id: int
    name: str
    institution_id: int
    supervisor_id: Optional[int] = None


@dataclass(frozen=True)
class SedeAssignmentPlan:
    """Writes that must be committed together when a sede is saved."""

    name: str
    institution_id: int
    supervisor_id: Optional[int]
    sede_id: Optional[int] = None
    released_sede_ids: tuple[int, ...] = ()
    cleared_user_ids: tuple[int, ...] = ()
