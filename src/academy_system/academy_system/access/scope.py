from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional, TypeVar

from ..core.enums import Role, ScopedResource

T = TypeVar("T")

ID_FIELDS = {
    ScopedResource.GROUPS: "group_id",
    ScopedResource.STUDENTS: "user_id",
    ScopedResource.STAFF: "user_id",
    ScopedResource.SESSIONS: "session_id",
}


@dataclass(frozen=True)
class ScopeDescriptor:
    """Declarative read filter for one resource.

    ``institution_id`` is always an equality constraint. The optional fields
    are equality constraints when set and absent otherwise:

    - ``sede_id``: record.sede_id
    - ``owner_id``: record.teacher_id (groups)
    - ``member_id``: contained in record.student_ids (groups)
    - ``ids``: record id (see ``ID_FIELDS``) in the set
    - ``group_ids``: record.group_id in the set (sessions)
    """

    resource: ScopedResource
    institution_id: int
    sede_id: Optional[int] = None
    owner_id: Optional[int] = None
    member_id: Optional[int] = None
    ids: Optional[frozenset[int]] = None
    group_ids: Optional[frozenset[int]] = None
    denied: bool = False
    writable: bool = False

    @classmethod
    def deny(cls, resource: ScopedResource, institution_id: int) -> "ScopeDescriptor":
        return cls(resource=resource, institution_id=institution_id, denied=True)

    @property
    def is_empty(self) -> bool:
        """True when no record can possibly match."""
        if self.denied:
            return True
        if self.ids is not None and not self.ids:
            return True
        return self.group_ids is not None and not self.group_ids

    def read_only(self) -> "ScopeDescriptor":
        return replace(self, writable=False)

    def allows(self, record: Any) -> bool:
        if self.denied:
            return False
        if getattr(record, "institution_id", None) != self.institution_id:
            return False

        role = getattr(record, "role", None)
        if self.resource == ScopedResource.STUDENTS and role != Role.STUDENT:
            return False
        if self.resource == ScopedResource.STAFF and (role is None or role == Role.STUDENT):
            return False

        if self.sede_id is not None and getattr(record, "sede_id", None) != self.sede_id:
            return False
        if self.owner_id is not None and getattr(record, "teacher_id", None) != self.owner_id:
            return False
        if self.member_id is not None and self.member_id not in (getattr(record, "student_ids", None) or ()):
            return False
        if self.ids is not None and getattr(record, ID_FIELDS[self.resource], None) not in self.ids:
            return False
        if self.group_ids is not None and getattr(record, "group_id", None) not in self.group_ids:
            return False
        return True

    def filter(self, records: Iterable[T]) -> list[T]:
        return [r for r in records if self.allows(r)]
