from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, Optional, Protocol, Sequence

from ..access.scope import ScopeDescriptor
from ..core.enums import AttendanceStatus
from .model import AttendanceRecord, Session, StaffCheckIn


class AttendanceRepository(Protocol):
    """Class sessions, student attendance and staff check-ins."""

    def list_sessions(self, scope: ScopeDescriptor, *, group_id: Optional[int] = None) -> Sequence[Session]:
        raise NotImplementedError

    def get_session(self, session_id: int) -> Optional[Session]:
        raise NotImplementedError

    def get_session_by_code(self, qr_code_value: str) -> Optional[Session]:
        raise NotImplementedError

    def create_session(
        self,
        *,
        group_id: int,
        institution_id: int,
        session_date: date,
        session_time: time,
        qr_code_value: str,
    ) -> int:
        raise NotImplementedError

    def list_records(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_record(self, session_id: int, user_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create_record(
        self,
        *,
        session_id: int,
        user_id: int,
        institution_id: int,
        status: AttendanceStatus,
        timestamp: datetime,
        observation: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def upsert_records(self, records: Sequence[AttendanceRecord]) -> None:
        """Insert or overwrite (session, user) rows in one transaction."""

        raise NotImplementedError

    def list_records_for_user(self, user_id: int, *, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def get_staff_checkin(self, user_id: int, check_date: date) -> Optional[StaffCheckIn]:
        raise NotImplementedError

    def create_staff_checkin(
        self,
        *,
        user_id: int,
        user_name: str,
        institution_id: int,
        sede_id: Optional[int],
        check_date: date,
        timestamp: datetime,
        code_used: str,
    ) -> int:
        raise NotImplementedError

    def list_staff_checkins(
        self,
        *,
        institution_id: int,
        user_ids: Iterable[int],
        start: date,
        end: date,
    ) -> Sequence[StaffCheckIn]:
        raise NotImplementedError

    def list_checkins_for_user(self, user_id: int, *, limit: int) -> Sequence[StaffCheckIn]:
        raise NotImplementedError
