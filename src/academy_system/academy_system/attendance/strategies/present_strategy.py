from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ..model import Session
from .base import CheckInStrategy, StatusDecision


class PresentStrategy(CheckInStrategy):
    """Arrived before the grace period ran out."""

    def decide(self, *, now: datetime, session: Session, grace_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)
