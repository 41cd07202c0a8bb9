from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..core.enums import Role
from ..core.exceptions import ConfigurationError, ScopeUnavailableError
from ..users.model import User


@dataclass(frozen=True)
class AdminPrincipal:
    user_id: int
    institution_id: int


@dataclass(frozen=True)
class SupervisorPrincipal:
    user_id: int
    institution_id: int
    sede_id: int


@dataclass(frozen=True)
class TeacherPrincipal:
    user_id: int
    institution_id: int


@dataclass(frozen=True)
class StudentPrincipal:
    user_id: int
    institution_id: int


@dataclass(frozen=True)
class CashierPrincipal:
    user_id: int
    institution_id: int


Principal = Union[AdminPrincipal, SupervisorPrincipal, TeacherPrincipal, StudentPrincipal, CashierPrincipal]


def principal_for(user: User) -> Principal:
    """Turn a signed-in user into the principal variant for its role.

    A supervisor cannot exist without a sede: that case is rejected here, so
    the policies never see a supervisor with a missing affiliation.
    """

    if user.institution_id is None:
        raise ConfigurationError("La cuenta no está asociada a una institución. Contacta al administrador.")

    institution_id = int(user.institution_id)
    if user.role == Role.ADMIN:
        return AdminPrincipal(user_id=user.user_id, institution_id=institution_id)
    if user.role == Role.SUPERVISOR:
        if user.sede_id is None:
            raise ScopeUnavailableError("No tienes una sede asignada. Pide a un administrador que te asigne una.")
        return SupervisorPrincipal(user_id=user.user_id, institution_id=institution_id, sede_id=int(user.sede_id))
    if user.role == Role.TEACHER:
        return TeacherPrincipal(user_id=user.user_id, institution_id=institution_id)
    if user.role == Role.STUDENT:
        return StudentPrincipal(user_id=user.user_id, institution_id=institution_id)
    if user.role == Role.CAJA:
        return CashierPrincipal(user_id=user.user_id, institution_id=institution_id)
    raise TypeError(f"Unsupported role: {user.role!r}")
