from __future__ import annotations

from typing import Sequence

from ...core.enums import ScopedResource
from ...groups.model import Group
from ..principal import AdminPrincipal
from ..scope import ScopeDescriptor
from .base import ScopePolicy


class AdminScopePolicy(ScopePolicy):
    """Everything inside the admin's institution."""

    def groups(self, principal: AdminPrincipal) -> ScopeDescriptor:
        return ScopeDescriptor(ScopedResource.GROUPS, principal.institution_id, writable=True)

    def students(self, principal: AdminPrincipal, groups: Sequence[Group]) -> ScopeDescriptor:
        return ScopeDescriptor(ScopedResource.STUDENTS, principal.institution_id, writable=True)

    def staff(self, principal: AdminPrincipal) -> ScopeDescriptor:
        return ScopeDescriptor(ScopedResource.STAFF, principal.institution_id, writable=True)

    def sessions(self, principal: AdminPrincipal, groups: Sequence[Group]) -> ScopeDescriptor:
        return ScopeDescriptor(ScopedResource.SESSIONS, principal.institution_id, writable=True)
