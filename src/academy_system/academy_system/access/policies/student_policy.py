from __future__ import annotations

from typing import Sequence

from ...core.enums import ScopedResource
from ...groups.model import Group
from ..principal import StudentPrincipal
from ..scope import ScopeDescriptor
from .base import ScopePolicy, group_ids, groups_in_institution


class StudentScopePolicy(ScopePolicy):
    """Read-only view of the student's own memberships and record."""

    def groups(self, principal: StudentPrincipal) -> ScopeDescriptor:
        return ScopeDescriptor(ScopedResource.GROUPS, principal.institution_id, member_id=principal.user_id)

    def students(self, principal: StudentPrincipal, groups: Sequence[Group]) -> ScopeDescriptor:
        return ScopeDescriptor(ScopedResource.STUDENTS, principal.institution_id, ids=frozenset({principal.user_id}))

    def staff(self, principal: StudentPrincipal) -> ScopeDescriptor:
        return ScopeDescriptor.deny(ScopedResource.STAFF, principal.institution_id)

    def sessions(self, principal: StudentPrincipal, groups: Sequence[Group]) -> ScopeDescriptor:
        mine = groups_in_institution(groups, principal.institution_id, lambda g: principal.user_id in g.student_ids)
        return ScopeDescriptor(ScopedResource.SESSIONS, principal.institution_id, group_ids=group_ids(mine))
