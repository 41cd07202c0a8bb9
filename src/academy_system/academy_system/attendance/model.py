from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class Session:
    """Entidad de dominio: sesión de clase de un grupo."""

    session_id: int
    group_id: int
    institution_id: int
    session_date: date
    session_time: time
    qr_code_value: Optional[str] = None

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.session_date, self.session_time)


@dataclass(frozen=True)
class AttendanceRecord:
    record_id: int
    session_id: int
    user_id: int
    status: AttendanceStatus
    timestamp: datetime
    institution_id: int
    observation: Optional[str] = None


@dataclass(frozen=True)
class StaffCheckIn:
    """Llegada de un miembro del personal registrada por QR."""

    checkin_id: int
    user_id: int
    user_name: str
    institution_id: int
    sede_id: Optional[int]
    check_date: date
    timestamp: datetime
    code_used: str
