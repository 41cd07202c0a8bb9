from __future__ import annotations

from typing import Sequence

from ...core.enums import ScopedResource
from ...groups.model import Group
from ..principal import CashierPrincipal
from ..scope import ScopeDescriptor
from .base import ScopePolicy


class CashierScopePolicy(ScopePolicy):
    """Caja: no groups, students or staff; attendance sessions read-only."""

    def groups(self, principal: CashierPrincipal) -> ScopeDescriptor:
        return ScopeDescriptor.deny(ScopedResource.GROUPS, principal.institution_id)

    def students(self, principal: CashierPrincipal, groups: Sequence[Group]) -> ScopeDescriptor:
        return ScopeDescriptor.deny(ScopedResource.STUDENTS, principal.institution_id)

    def staff(self, principal: CashierPrincipal) -> ScopeDescriptor:
        return ScopeDescriptor.deny(ScopedResource.STAFF, principal.institution_id)

    def sessions(self, principal: CashierPrincipal, groups: Sequence[Group]) -> ScopeDescriptor:
        return ScopeDescriptor(ScopedResource.SESSIONS, principal.institution_id)
