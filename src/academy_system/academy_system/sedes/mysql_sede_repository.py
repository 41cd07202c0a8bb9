from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Sede, SedeAssignmentPlan
from .repository import SedeRepository

_SELECT = "SELECT s.sede_id, s.name, s.institution_id, s.supervisor_id FROM sedes s"


def _to_sede(row: Dict[str, Any]) -> Sede:
    return Sede(
        sede_id=int(row["sede_id"]),
        name=row["name"],
        institution_id=int(row["institution_id"]),
        supervisor_id=row.get("supervisor_id"),
    )


class MySQLSedeRepository(SedeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_institution(self, institution_id: int) -> Sequence[Sede]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE s.institution_id=%s ORDER BY s.name", (int(institution_id),))
            return [_to_sede(r) for r in fetchall(cur)]

    def get_by_id(self, sede_id: int) -> Optional[Sede]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE s.sede_id=%s", (int(sede_id),))
            row = fetchone(cur)
            return _to_sede(row) if row else None

    def find_by_supervisor(self, supervisor_id: int) -> Optional[Sede]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE s.supervisor_id=%s LIMIT 1", (int(supervisor_id),))
            row = fetchone(cur)
            return _to_sede(row) if row else None

    def save_assignment(self, plan: SedeAssignmentPlan) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            for released_id in plan.released_sede_ids:
                cur.execute("UPDATE sedes SET supervisor_id=NULL WHERE sede_id=%s", (int(released_id),))
            for user_id in plan.cleared_user_ids:
                cur.execute("UPDATE users SET sede_id=NULL WHERE user_id=%s", (int(user_id),))

            if plan.sede_id is None:
                cur.execute(
                    "INSERT INTO sedes(name, institution_id, supervisor_id) VALUES(%s,%s,%s)",
                    (plan.name, plan.institution_id, plan.supervisor_id),
                )
                sede_id = int(cur.lastrowid)
            else:
                sede_id = int(plan.sede_id)
                cur.execute(
                    "UPDATE sedes SET name=%s, supervisor_id=%s WHERE sede_id=%s AND institution_id=%s",
                    (plan.name, plan.supervisor_id, sede_id, plan.institution_id),
                )

            if plan.supervisor_id is not None:
                cur.execute("UPDATE users SET sede_id=%s WHERE user_id=%s", (sede_id, int(plan.supervisor_id)))
            return sede_id

    def delete_cascade(self, sede_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET sede_id=NULL WHERE sede_id=%s", (int(sede_id),))
            cur.execute("UPDATE class_groups SET sede_id=NULL WHERE sede_id=%s", (int(sede_id),))
            cur.execute("DELETE FROM sedes WHERE sede_id=%s", (int(sede_id),))
            return cur.rowcount > 0
