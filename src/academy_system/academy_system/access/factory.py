from __future__ import annotations

from dataclasses import dataclass

from .policies.admin_policy import AdminScopePolicy
from .policies.base import ScopePolicy
from .policies.cashier_policy import CashierScopePolicy
from .policies.student_policy import StudentScopePolicy
from .policies.supervisor_policy import SupervisorScopePolicy
from .policies.teacher_policy import TeacherScopePolicy
from .principal import (
    AdminPrincipal,
    CashierPrincipal,
    Principal,
    StudentPrincipal,
    SupervisorPrincipal,
    TeacherPrincipal,
)


@dataclass
class ScopePolicyFactory:
    """Factory Pattern: pick the scope policy for a principal variant."""

    def for_principal(self, principal: Principal) -> ScopePolicy:
        if isinstance(principal, AdminPrincipal):
            return AdminScopePolicy()
        if isinstance(principal, SupervisorPrincipal):
            return SupervisorScopePolicy()
        if isinstance(principal, TeacherPrincipal):
            return TeacherScopePolicy()
        if isinstance(principal, StudentPrincipal):
            return StudentScopePolicy()
        if isinstance(principal, CashierPrincipal):
            return CashierScopePolicy()
        raise TypeError(f"No scope policy for {type(principal).__name__}")
