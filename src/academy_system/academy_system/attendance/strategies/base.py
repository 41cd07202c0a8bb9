from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ..model import Session


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    observation: Optional[str] = None


class CheckInStrategy(ABC):
    """Strategy Pattern: encapsulate how a check-in status is decided."""

    @abstractmethod
    def decide(self, *, now: datetime, session: Session, grace_minutes: int) -> StatusDecision:
        raise NotImplementedError
