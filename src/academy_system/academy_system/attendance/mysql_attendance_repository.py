from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Dict, Iterable, Optional, Sequence

from ..access.scope import ScopeDescriptor
from ..core.enums import AttendanceStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time
from ..database.scope_sql import ScopeColumns, scope_where
from .model import AttendanceRecord, Session, StaffCheckIn
from .repository import AttendanceRepository

_SESSION_SELECT = """
    SELECT s.session_id, s.group_id, s.institution_id, s.session_date, s.session_time, s.qr_code_value
    FROM class_sessions s
"""

_RECORD_SELECT = """
    SELECT r.record_id, r.session_id, r.user_id, r.institution_id, r.status, r.recorded_at, r.observation
    FROM attendance_records r
"""

_CHECKIN_SELECT = """
    SELECT c.checkin_id, c.user_id, c.user_name, c.institution_id, c.sede_id, c.check_date,
           c.checked_in_at, c.code_used
    FROM staff_checkins c
"""

_SESSION_SCOPE_COLUMNS = ScopeColumns(
    institution_id="s.institution_id",
    record_id="s.session_id",
    group_id="s.group_id",
)


def _to_session(row: Dict[str, Any]) -> Session:
    return Session(
        session_id=int(row["session_id"]),
        group_id=int(row["group_id"]),
        institution_id=int(row["institution_id"]),
        session_date=row["session_date"],
        session_time=normalize_mysql_time(row["session_time"]),
        qr_code_value=row.get("qr_code_value"),
    )


def _to_record(row: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        record_id=int(row["record_id"]),
        session_id=int(row["session_id"]),
        user_id=int(row["user_id"]),
        status=AttendanceStatus(row["status"]),
        timestamp=row["recorded_at"],
        institution_id=int(row["institution_id"]),
        observation=row.get("observation"),
    )


def _to_checkin(row: Dict[str, Any]) -> StaffCheckIn:
    return StaffCheckIn(
        checkin_id=int(row["checkin_id"]),
        user_id=int(row["user_id"]),
        user_name=row["user_name"],
        institution_id=int(row["institution_id"]),
        sede_id=row.get("sede_id"),
        check_date=row["check_date"],
        timestamp=row["checked_in_at"],
        code_used=row["code_used"],
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_sessions(self, scope: ScopeDescriptor, *, group_id: Optional[int] = None) -> Sequence[Session]:
        where, params = scope_where(scope, _SESSION_SCOPE_COLUMNS)
        if group_id is not None:
            where += " AND s.group_id=%s"
            params.append(int(group_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SESSION_SELECT} WHERE {where} ORDER BY s.session_date DESC, s.session_time DESC",
                tuple(params),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def get_session(self, session_id: int) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SESSION_SELECT} WHERE s.session_id=%s", (int(session_id),))
            row = fetchone(cur)
            return _to_session(row) if row else None

    def get_session_by_code(self, qr_code_value: str) -> Optional[Session]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SESSION_SELECT} WHERE s.qr_code_value=%s", (qr_code_value,))
            row = fetchone(cur)
            return _to_session(row) if row else None

    def create_session(
        self,
        *,
        group_id: int,
        institution_id: int,
        session_date: date,
        session_time: time,
        qr_code_value: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO class_sessions(group_id, institution_id, session_date, session_time, qr_code_value)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(group_id), int(institution_id), session_date, session_time, qr_code_value),
            )
            return int(cur.lastrowid)

    def list_records(self, session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_RECORD_SELECT} WHERE r.session_id=%s ORDER BY r.recorded_at", (int(session_id),))
            return [_to_record(r) for r in fetchall(cur)]

    def get_record(self, session_id: int, user_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_RECORD_SELECT} WHERE r.session_id=%s AND r.user_id=%s",
                (int(session_id), int(user_id)),
            )
            row = fetchone(cur)
            return _to_record(row) if row else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_records(session_id, user_id, institution_id, status, recorded_at, observation)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(session_id), int(user_id), int(institution_id), status.value, timestamp, observation),
            )
            return int(cur.lastrowid)

    def upsert_records(self, records: Sequence[AttendanceRecord]) -> None:
        if not records:
            return
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO attendance_records(session_id, user_id, institution_id, status, recorded_at, observation)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE status=VALUES(status), recorded_at=VALUES(recorded_at),
                                        observation=VALUES(observation)
                """,
                [
                    (r.session_id, r.user_id, r.institution_id, r.status.value, r.timestamp, r.observation)
                    for r in records
                ],
            )

    def list_records_for_user(self, user_id: int, *, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_RECORD_SELECT} WHERE r.user_id=%s ORDER BY r.recorded_at DESC LIMIT %s",
                (int(user_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def get_staff_checkin(self, user_id: int, check_date: date) -> Optional[StaffCheckIn]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_CHECKIN_SELECT} WHERE c.user_id=%s AND c.check_date=%s", (int(user_id), check_date))
            row = fetchone(cur)
            return _to_checkin(row) if row else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO staff_checkins(user_id, user_name, institution_id, sede_id, check_date, checked_in_at, code_used)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(user_id), user_name, int(institution_id), sede_id, check_date, timestamp, code_used),
            )
            return int(cur.lastrowid)

    def list_staff_checkins(
        self,
        *,
        institution_id: int,
        user_ids: Iterable[int],
        start: date,
        end: date,
    ) -> Sequence[StaffCheckIn]:
        users_sql, users_params = in_clause("c.user_id", sorted({int(u) for u in user_ids}))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_CHECKIN_SELECT}
                WHERE c.institution_id=%s AND c.check_date BETWEEN %s AND %s AND {users_sql}
                ORDER BY c.check_date DESC, c.checked_in_at DESC
                """,
                (int(institution_id), start, end, *users_params),
            )
            return [_to_checkin(r) for r in fetchall(cur)]

    def list_checkins_for_user(self, user_id: int, *, limit: int) -> Sequence[StaffCheckIn]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_CHECKIN_SELECT} WHERE c.user_id=%s ORDER BY c.check_date DESC LIMIT %s",
                (int(user_id), int(limit)),
            )
            return [_to_checkin(r) for r in fetchall(cur)]
