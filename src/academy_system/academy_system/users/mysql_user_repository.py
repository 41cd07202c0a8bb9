from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

from ..access.scope import ScopeDescriptor
from ..core.enums import Role, ScopedResource, StudentLevel
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from ..database.scope_sql import ScopeColumns, scope_where
from .model import User
from .repository import UserRepository

_SELECT = """
    SELECT u.user_id, u.name, u.username, u.email, u.password_hash, u.role, u.institution_id, u.sede_id,
           u.phone_number, u.level, u.requires_password_change, u.is_active
    FROM users u
"""

_SCOPE_COLUMNS = ScopeColumns(
    institution_id="u.institution_id",
    record_id="u.user_id",
    sede_id="u.sede_id",
)


def _to_user(row: Dict[str, Any]) -> User:
    return User(
        user_id=int(row["user_id"]),
        name=row["name"],
        username=row["username"],
        email=row.get("email"),
        password_hash=row.get("password_hash") or "",
        role=Role(row["role"]),
        institution_id=row.get("institution_id"),
        sede_id=row.get("sede_id"),
        phone_number=row.get("phone_number"),
        level=StudentLevel(row["level"]) if row.get("level") else None,
        requires_password_change=bool(row.get("requires_password_change", False)),
        is_active=bool(row.get("is_active", True)),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, where: str, value: Any) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where}", (value,))
            row = fetchone(cur)
            return _to_user(row) if row else None

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("u.user_id=%s", int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        return self._get_one("u.username=%s", username)

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("LOWER(u.email)=LOWER(%s)", email)

    def list_in_scope(self, scope: ScopeDescriptor) -> Sequence[User]:
        where, params = scope_where(scope, _SCOPE_COLUMNS)
        if scope.resource == ScopedResource.STUDENTS:
            role_sql = "u.role='student'"
        elif scope.resource == ScopedResource.STAFF:
            role_sql = "u.role<>'student'"
        else:
            raise ValueError(f"Users cannot be listed with a {scope.resource.value} scope")

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} AND {role_sql} AND u.is_active=1 ORDER BY u.name", tuple(params))
            return [_to_user(r) for r in fetchall(cur)]

    def list_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        where, params = in_clause("u.user_id", sorted({int(i) for i in user_ids}))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE {where} ORDER BY u.name", tuple(params))
            return [_to_user(r) for r in fetchall(cur)]

    def create_user(
        self,
        *,
        name: str,
        username: str,
        email: Optional[str],
        password_hash: str,
        role: Role,
        institution_id: int,
        sede_id: Optional[int],
        level: Optional[StudentLevel] = None,
        phone_number: Optional[str] = None,
        requires_password_change: bool = False,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO users(name, username, email, password_hash, role, institution_id, sede_id,
                                  level, phone_number, requires_password_change, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (
                    name,
                    username,
                    email,
                    password_hash,
                    role.value,
                    institution_id,
                    sede_id,
                    level.value if level else None,
                    phone_number,
                    int(requires_password_change),
                ),
            )
            return int(cur.lastrowid)

    def update_password(self, user_id: int, *, password_hash: str, requires_password_change: bool = False) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET password_hash=%s, requires_password_change=%s WHERE user_id=%s",
                (password_hash, int(requires_password_change), int(user_id)),
            )
            return cur.rowcount > 0

    def update_role(self, user_id: int, *, role: Role, sede_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET role=%s, sede_id=%s WHERE user_id=%s",
                (role.value, sede_id, int(user_id)),
            )
            updated = cur.rowcount > 0
            if role != Role.SUPERVISOR:
                cur.execute("UPDATE sedes SET supervisor_id=NULL WHERE supervisor_id=%s", (int(user_id),))
            if role != Role.TEACHER:
                cur.execute("UPDATE class_groups SET teacher_id=NULL WHERE teacher_id=%s", (int(user_id),))
            return updated

    def update_profile(
        self,
        user_id: int,
        *,
        name: str,
        phone_number: Optional[str],
        level: Optional[StudentLevel],
        sede_id: Optional[int],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET name=%s, phone_number=%s, level=%s, sede_id=%s WHERE user_id=%s",
                (name, phone_number, level.value if level else None, sede_id, int(user_id)),
            )
            return cur.rowcount > 0

    def deactivate_and_unassign(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET is_active=0, sede_id=NULL WHERE user_id=%s", (int(user_id),))
            if cur.rowcount == 0:
                return False
            cur.execute("UPDATE class_groups SET teacher_id=NULL WHERE teacher_id=%s", (int(user_id),))
            cur.execute("DELETE FROM group_students WHERE student_id=%s", (int(user_id),))
            cur.execute("UPDATE sedes SET supervisor_id=NULL WHERE supervisor_id=%s", (int(user_id),))
            return True
