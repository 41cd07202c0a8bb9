from __future__ import annotations

from typing import Sequence

from ...core.enums import ScopedResource
from ...groups.model import Group
from ..principal import TeacherPrincipal
from ..scope import ScopeDescriptor
from .base import ScopePolicy, group_ids, groups_in_institution, member_ids


class TeacherScopePolicy(ScopePolicy):
    """Groups the teacher is assigned to, and their students. No staff access."""

    def _own_groups(self, principal: TeacherPrincipal, groups: Sequence[Group]) -> list[Group]:
        return groups_in_institution(groups, principal.institution_id, lambda g: g.teacher_id == principal.user_id)

    def groups(self, principal: TeacherPrincipal) -> ScopeDescriptor:
        return ScopeDescriptor(
            ScopedResource.GROUPS,
            principal.institution_id,
            owner_id=principal.user_id,
            writable=True,
        )

    def students(self, principal: TeacherPrincipal, groups: Sequence[Group]) -> ScopeDescriptor:
        return ScopeDescriptor(
            ScopedResource.STUDENTS,
            principal.institution_id,
            ids=member_ids(self._own_groups(principal, groups)),
            writable=True,
        )

    def staff(self, principal: TeacherPrincipal) -> ScopeDescriptor:
        return ScopeDescriptor.deny(ScopedResource.STAFF, principal.institution_id)

    def sessions(self, principal: TeacherPrincipal, groups: Sequence[Group]) -> ScopeDescriptor:
        return ScopeDescriptor(
            ScopedResource.SESSIONS,
            principal.institution_id,
            group_ids=group_ids(self._own_groups(principal, groups)),
            writable=True,
        )
