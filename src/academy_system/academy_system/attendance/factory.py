from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .model import Session
from .strategies.base import CheckInStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.present_strategy import PresentStrategy


@dataclass
class CheckInStrategyFactory:
    """Factory Pattern: choose the check-in strategy from the session start time."""

    def for_check_in(self, *, now: datetime, session: Session, grace_minutes: int) -> CheckInStrategy:
        if now <= session.starts_at + timedelta(minutes=grace_minutes):
            return PresentStrategy()
        return LateStrategy()
