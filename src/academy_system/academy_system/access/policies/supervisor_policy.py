from __future__ import annotations

from typing import Sequence

from ...core.enums import ScopedResource
from ...groups.model import Group
from ..principal import SupervisorPrincipal
from ..scope import ScopeDescriptor
from .base import ScopePolicy, group_ids, groups_in_institution, member_ids


class SupervisorScopePolicy(ScopePolicy):
    """Records tied to the supervisor's own sede."""

    def _sede_groups(self, principal: SupervisorPrincipal, groups: Sequence[Group]) -> list[Group]:
        return groups_in_institution(groups, principal.institution_id, lambda g: g.sede_id == principal.sede_id)

    def groups(self, principal: SupervisorPrincipal) -> ScopeDescriptor:
        return ScopeDescriptor(
            ScopedResource.GROUPS,
            principal.institution_id,
            sede_id=principal.sede_id,
            writable=True,
        )

    def students(self, principal: SupervisorPrincipal, groups: Sequence[Group]) -> ScopeDescriptor:
        return ScopeDescriptor(
            ScopedResource.STUDENTS,
            principal.institution_id,
            ids=member_ids(self._sede_groups(principal, groups)),
            writable=True,
        )

    def staff(self, principal: SupervisorPrincipal) -> ScopeDescriptor:
        return ScopeDescriptor(
            ScopedResource.STAFF,
            principal.institution_id,
            sede_id=principal.sede_id,
            writable=True,
        )

    def sessions(self, principal: SupervisorPrincipal, groups: Sequence[Group]) -> ScopeDescriptor:
        return ScopeDescriptor(
            ScopedResource.SESSIONS,
            principal.institution_id,
            group_ids=group_ids(self._sede_groups(principal, groups)),
            writable=True,
        )
