"""In-memory repositories shared by the service and route tests."""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

from werkzeug.security import generate_password_hash

from src.academy_system.academy_system.access.scope import ScopeDescriptor
from src.academy_system.academy_system.attendance.model import AttendanceRecord, Session, StaffCheckIn
from src.academy_system.academy_system.core.context import RequestContext
from src.academy_system.academy_system.core.enums import AttendanceStatus, GroupType, Role, StudentLevel
from src.academy_system.academy_system.grading.model import PartialScores
from src.academy_system.academy_system.groups.model import Group
from src.academy_system.academy_system.sedes.model import Sede, SedeAssignmentPlan
from src.academy_system.academy_system.users.model import User


def make_user(user_id: int, role: Role, *, institution_id: Optional[int] = 1, sede_id: Optional[int] = None, **kw) -> User:
    return User(
        user_id=user_id,
        name=kw.pop("name", f"{role.value.title()} {user_id}"),
        username=kw.pop("username", f"{role.value}{user_id}"),
        role=role,
        institution_id=institution_id,
        sede_id=sede_id,
        **kw,
    )


def ctx_for(user: User, **kw) -> RequestContext:
    return RequestContext(user=user, **kw)


class InMemoryUsers:
    def __init__(self, users: Iterable[User] = ()):
        self.by_id: Dict[int, User] = {u.user_id: u for u in users}
        self._next_id = max(self.by_id, default=0) + 100

    def add(self, user: User) -> User:
        self.by_id[user.user_id] = user
        return user

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.by_id.get(int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.by_id.values() if u.username == username), None)

    def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.by_id.values() if u.email and u.email.lower() == email.lower()), None)

    def list_in_scope(self, scope: ScopeDescriptor) -> Sequence[User]:
        return sorted((u for u in scope.filter(self.by_id.values()) if u.is_active), key=lambda u: u.name)

    def list_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        return [self.by_id[int(i)] for i in user_ids if int(i) in self.by_id]

    def create_user(self, *, password_hash: str, **fields: Any) -> int:
        self._next_id += 1
        self.by_id[self._next_id] = User(user_id=self._next_id, password_hash=password_hash, **fields)
        return self._next_id

    def update_password(self, user_id: int, *, password_hash: str, requires_password_change: bool = False) -> bool:
        user = self.by_id.get(int(user_id))
        if not user:
            return False
        self.by_id[user.user_id] = replace(
            user, password_hash=password_hash, requires_password_change=requires_password_change
        )
        return True

    def update_role(self, user_id: int, *, role: Role, sede_id: Optional[int]) -> bool:
        user = self.by_id.get(int(user_id))
        if not user:
            return False
        self.by_id[user.user_id] = replace(user, role=role, sede_id=sede_id)
        return True

    def update_profile(self, user_id: int, *, name: str, phone_number: Optional[str], level: Optional[StudentLevel],
                       sede_id: Optional[int]) -> bool:
        user = self.by_id.get(int(user_id))
        if not user:
            return False
        self.by_id[user.user_id] = replace(user, name=name, phone_number=phone_number, level=level, sede_id=sede_id)
        return True

    def deactivate_and_unassign(self, user_id: int) -> bool:
        user = self.by_id.get(int(user_id))
        if not user:
            return False
        self.by_id[user.user_id] = replace(user, is_active=False, sede_id=None)
        return True


class InMemorySedes:
    def __init__(self, sedes: Iterable[Sede] = (), users: Optional[InMemoryUsers] = None):
        self.by_id: Dict[int, Sede] = {s.sede_id: s for s in sedes}
        self.users = users
        self.saved_plans: list[SedeAssignmentPlan] = []

    def list_for_institution(self, institution_id: int) -> Sequence[Sede]:
        return [s for s in self.by_id.values() if s.institution_id == institution_id]

    def get_by_id(self, sede_id: int) -> Optional[Sede]:
        return self.by_id.get(int(sede_id))

    def find_by_supervisor(self, supervisor_id: int) -> Optional[Sede]:
        return next((s for s in self.by_id.values() if s.supervisor_id == supervisor_id), None)

    def save_assignment(self, plan: SedeAssignmentPlan) -> int:
        self.saved_plans.append(plan)
        for released in plan.released_sede_ids:
            self.by_id[released] = replace(self.by_id[released], supervisor_id=None)
        sede_id = plan.sede_id or max(self.by_id, default=0) + 1
        self.by_id[sede_id] = Sede(
            sede_id=sede_id, name=plan.name, institution_id=plan.institution_id, supervisor_id=plan.supervisor_id
        )
        if self.users is not None:
            for user_id in plan.cleared_user_ids:
                self.users.by_id[user_id] = replace(self.users.by_id[user_id], sede_id=None)
            if plan.supervisor_id is not None:
                self.users.by_id[plan.supervisor_id] = replace(self.users.by_id[plan.supervisor_id], sede_id=sede_id)
        return sede_id

    def delete_cascade(self, sede_id: int) -> bool:
        return self.by_id.pop(int(sede_id), None) is not None


class InMemoryGroups:
    def __init__(self, groups: Iterable[Group] = ()):
        self.by_id: Dict[int, Group] = {g.group_id: g for g in groups}

    def list_in_scope(self, scope: ScopeDescriptor) -> Sequence[Group]:
        return sorted(scope.filter(self.by_id.values()), key=lambda g: g.name)

    def get_by_id(self, group_id: int) -> Optional[Group]:
        return self.by_id.get(int(group_id))

    def create(self, **fields: Any) -> int:
        group_id = max(self.by_id, default=0) + 1
        self.by_id[group_id] = Group(group_id=group_id, **fields)
        return group_id

    def update(self, group_id: int, **fields: Any) -> bool:
        self.by_id[group_id] = replace(self.by_id[group_id], **fields)
        return True

    def set_teacher(self, group_id: int, teacher_id: Optional[int]) -> bool:
        self.by_id[group_id] = replace(self.by_id[group_id], teacher_id=teacher_id)
        return True

    def set_students(self, group_id: int, student_ids: Iterable[int]) -> None:
        self.by_id[group_id] = replace(self.by_id[group_id], student_ids=frozenset(student_ids))

    def delete(self, group_id: int) -> bool:
        return self.by_id.pop(int(group_id), None) is not None


class InMemoryGrades:
    def __init__(self, grades: Optional[Dict[int, Dict[str, Any]]] = None):
        self.docs: Dict[int, Dict[str, PartialScores]] = {
            sid: {k: PartialScores.from_dict(v) for k, v in partials.items()} for sid, partials in (grades or {}).items()
        }

    def get_grades(self, student_id: int) -> Dict[str, PartialScores]:
        return dict(self.docs.get(int(student_id), {}))

    def list_grades(self, student_ids: Iterable[int]) -> Dict[int, Dict[str, PartialScores]]:
        return {int(s): dict(self.docs[int(s)]) for s in student_ids if int(s) in self.docs}

    def save_grades(self, student_id: int, grades: Mapping[str, PartialScores]) -> None:
        self.docs.setdefault(int(student_id), {}).update(grades)


class InMemoryGradingConfigs:
    def __init__(self, docs: Optional[Dict[int, Dict[str, Any]]] = None, *, fail: bool = False):
        self.docs = dict(docs or {})
        self.fail = fail
        self.reads = 0

    def get_config(self, institution_id: int) -> Optional[Dict[str, Any]]:
        self.reads += 1
        if self.fail:
            raise ConnectionError("database unreachable")
        return self.docs.get(int(institution_id))

    def save_config(self, institution_id: int, payload: Mapping[str, Any]) -> None:
        self.docs[int(institution_id)] = dict(payload)


class InMemoryAttendance:
    def __init__(self, sessions: Iterable[Session] = ()):
        self.sessions: Dict[int, Session] = {s.session_id: s for s in sessions}
        self.records: Dict[tuple[int, int], AttendanceRecord] = {}
        self.checkins: list[StaffCheckIn] = []

    def list_sessions(self, scope: ScopeDescriptor, *, group_id: Optional[int] = None) -> Sequence[Session]:
        items = scope.filter(self.sessions.values())
        if group_id is not None:
            items = [s for s in items if s.group_id == group_id]
        return items

    def get_session(self, session_id: int) -> Optional[Session]:
        return self.sessions.get(int(session_id))

    def get_session_by_code(self, qr_code_value: str) -> Optional[Session]:
        return next((s for s in self.sessions.values() if s.qr_code_value == qr_code_value), None)

    def create_session(self, *, group_id: int, institution_id: int, session_date: date, session_time: time, qr_code_value: str) -> int:
        session_id = max(self.sessions, default=0) + 1
        self.sessions[session_id] = Session(session_id, group_id, institution_id, session_date, session_time, qr_code_value)
        return session_id

    def list_records(self, session_id: int) -> Sequence[AttendanceRecord]:
        return [r for (sid, _), r in self.records.items() if sid == session_id]

    def get_record(self, session_id: int, user_id: int) -> Optional[AttendanceRecord]:
        return self.records.get((int(session_id), int(user_id)))

    def create_record(self, *, session_id: int, user_id: int, institution_id: int, status: AttendanceStatus,
                      timestamp: datetime, observation: Optional[str] = None) -> int:
        record_id = len(self.records) + 1
        self.records[(session_id, user_id)] = AttendanceRecord(
            record_id, session_id, user_id, status, timestamp, institution_id, observation
        )
        return record_id

    def upsert_records(self, records: Sequence[AttendanceRecord]) -> None:
        for r in records:
            self.records[(r.session_id, r.user_id)] = r

    def list_records_for_user(self, user_id: int, *, limit: int) -> Sequence[AttendanceRecord]:
        return [r for (_, uid), r in self.records.items() if uid == user_id][:limit]

    def get_staff_checkin(self, user_id: int, check_date: date) -> Optional[StaffCheckIn]:
        return next((c for c in self.checkins if c.user_id == user_id and c.check_date == check_date), None)

    def create_staff_checkin(self, **fields: Any) -> int:
        checkin_id = len(self.checkins) + 1
        self.checkins.append(StaffCheckIn(checkin_id=checkin_id, **fields))
        return checkin_id

    def list_staff_checkins(self, *, institution_id: int, user_ids: Iterable[int], start: date, end: date) -> Sequence[StaffCheckIn]:
        ids = set(user_ids)
        return [
            c for c in self.checkins
            if c.institution_id == institution_id and c.user_id in ids and start <= c.check_date <= end
        ]

    def list_checkins_for_user(self, user_id: int, *, limit: int) -> Sequence[StaffCheckIn]:
        return [c for c in self.checkins if c.user_id == user_id][:limit]


def demo_world():
    """Two institutions; institution 1 has two sedes, a teacher per sede and three students."""

    pw = generate_password_hash("secreto123")
    users = InMemoryUsers(
        [
            make_user(1, Role.ADMIN, username="admin", email="admin@demo.edu", password_hash=pw),
            make_user(2, Role.SUPERVISOR, sede_id=10, username="super", password_hash=pw),
            make_user(3, Role.TEACHER, sede_id=10, username="doc", password_hash=pw),
            make_user(4, Role.TEACHER, sede_id=20, username="doc2", password_hash=pw),
            make_user(5, Role.CAJA, username="caja", password_hash=pw),
            make_user(6, Role.STUDENT, username="ana", name="Ana", level=StudentLevel.BEGINNER, password_hash=pw),
            make_user(7, Role.STUDENT, username="beto", name="Beto", password_hash=pw),
            make_user(8, Role.STUDENT, username="carla", name="Carla", password_hash=pw),
            make_user(50, Role.ADMIN, institution_id=2, username="otro", password_hash=pw),
            make_user(51, Role.STUDENT, institution_id=2, username="ajeno", password_hash=pw),
        ]
    )
    sedes = InMemorySedes(
        [
            Sede(10, "Sede Norte", 1, supervisor_id=2),
            Sede(20, "Sede Sur", 1),
            Sede(90, "Sede Externa", 2),
        ],
        users=users,
    )
    groups = InMemoryGroups(
        [
            Group(100, "Sábado A", 1, GroupType.SATURDAY, date(2026, 1, 10), sede_id=10, teacher_id=3,
                  student_ids=frozenset({6, 7})),
            Group(200, "Domingo B", 1, GroupType.SUNDAY, date(2026, 1, 11), sede_id=20, teacher_id=4,
                  student_ids=frozenset({8})),
            Group(900, "Externo", 2, GroupType.SATURDAY, date(2026, 1, 10), sede_id=90,
                  student_ids=frozenset({51})),
        ]
    )
    return users, sedes, groups
