from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..access.scope import ScopeDescriptor
from ..core.enums import GroupType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from ..database.scope_sql import ScopeColumns, scope_where
from .model import Group
from .repository import GroupRepository

_SELECT = """
    SELECT g.group_id, g.name, g.institution_id, g.group_type, g.start_date, g.end_date, g.sede_id, g.teacher_id
    FROM class_groups g
"""

_SCOPE_COLUMNS = ScopeColumns(
    institution_id="g.institution_id",
    record_id="g.group_id",
    sede_id="g.sede_id",
    owner_id="g.teacher_id",
    member_exists="EXISTS (SELECT 1 FROM group_students gs WHERE gs.group_id=g.group_id AND gs.student_id=%s)",
)


def _to_group(row: Dict[str, Any], student_ids: Iterable[int]) -> Group:
    return Group(
        group_id=int(row["group_id"]),
        name=row["name"],
        institution_id=int(row["institution_id"]),
        group_type=GroupType(row["group_type"]),
        start_date=row["start_date"],
        end_date=row.get("end_date"),
        sede_id=row.get("sede_id"),
        teacher_id=row.get("teacher_id"),
        student_ids=frozenset(int(s) for s in student_ids),
    )


class MySQLGroupRepository(GroupRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _attach_members(self, cur, rows: List[Dict[str, Any]]) -> List[Group]:
        if not rows:
            return []
        where, params = in_clause("group_id", [int(r["group_id"]) for r in rows])
        cur.execute(f"SELECT group_id, student_id FROM group_students WHERE {where}", tuple(params))
        members: Dict[int, List[int]] = {}
        for m in fetchall(cur):
            members.setdefault(int(m["group_id"]), []).append(int(m["student_id"]))
        return [_to_group(r, members.get(int(r["group_id"]), [])) for r in rows]

    def list_in_scope(self, scope: ScopeDescriptor) -> Sequence[Group]:
        where, params = scope_where(scope, _SCOPE_COLUMNS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} ORDER BY g.name", tuple(params))
            return self._attach_members(cur, fetchall(cur))

    def get_by_id(self, group_id: int) -> Optional[Group]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE g.group_id=%s", (int(group_id),))
            row = fetchone(cur)
            if not row:
                return None
            return self._attach_members(cur, [row])[0]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO class_groups(name, institution_id, group_type, start_date, end_date, sede_id, teacher_id)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (name, institution_id, group_type.value, start_date, end_date, sede_id, teacher_id),
            )
            return int(cur.lastrowid)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE class_groups SET name=%s, group_type=%s, start_date=%s, end_date=%s, sede_id=%s
                WHERE group_id=%s
                """,
                (name, group_type.value, start_date, end_date, sede_id, int(group_id)),
            )
            return cur.rowcount > 0

    def set_teacher(self, group_id: int, teacher_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE class_groups SET teacher_id=%s WHERE group_id=%s", (teacher_id, int(group_id)))
            return cur.rowcount > 0

    def set_students(self, group_id: int, student_ids: Iterable[int]) -> None:
        ids = sorted({int(s) for s in student_ids})
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM group_students WHERE group_id=%s", (int(group_id),))
            if ids:
                cur.executemany(
                    "INSERT INTO group_students(group_id, student_id) VALUES(%s,%s)",
                    [(int(group_id), s) for s in ids],
                )

    def delete(self, group_id: int) -> bool:
        # Sessions and their attendance records are kept as history.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM group_students WHERE group_id=%s", (int(group_id),))
            cur.execute("DELETE FROM class_groups WHERE group_id=%s", (int(group_id),))
            return cur.rowcount > 0
