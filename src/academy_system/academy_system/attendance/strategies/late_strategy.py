from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ..model import Session
from .base import CheckInStrategy, StatusDecision


class LateStrategy(CheckInStrategy):
    """Check-in after the session start plus the grace period."""

    def decide(self, *, now: datetime, session: Session, grace_minutes: int) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.LATE)
