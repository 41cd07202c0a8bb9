from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..core.enums import ScopedResource
from ..core.exceptions import AuthorizationError, ConfigurationError, ScopeUnavailableError
from ..groups.model import Group
from ..users.model import User
from .factory import ScopePolicyFactory
from .principal import Principal, principal_for
from .scope import ScopeDescriptor

logger = logging.getLogger(__name__)


class AccessScopeResolver:
    """Computes which groups, students, staff and sessions a user may see.

    Pure: the result depends only on the user and, for students and sessions,
    on the group list the caller already loaded.
    """

    def __init__(self, *, policy_factory: Optional[ScopePolicyFactory] = None):
        self._factory = policy_factory or ScopePolicyFactory()

    def principal(self, user: User) -> Principal:
        try:
            return principal_for(user)
        except ScopeUnavailableError:
            logger.warning("scope unavailable: user_id=%s role=%s has no sede", user.user_id, user.role.value)
            raise
        except ConfigurationError:
            logger.warning("configuration error: user_id=%s role=%s has no institution", user.user_id, user.role.value)
            raise

    def resolve(self, user: User, resource: ScopedResource, groups: Sequence[Group] = ()) -> ScopeDescriptor:
        principal = self.principal(user)
        policy = self._factory.for_principal(principal)

        if resource == ScopedResource.GROUPS:
            return policy.groups(principal)
        if resource == ScopedResource.STUDENTS:
            return policy.students(principal, groups)
        if resource == ScopedResource.STAFF:
            return policy.staff(principal)
        if resource == ScopedResource.SESSIONS:
            return policy.sessions(principal, groups)
        raise TypeError(f"Unsupported resource: {resource!r}")

    def groups_scope(self, user: User) -> ScopeDescriptor:
        return self.resolve(user, ScopedResource.GROUPS)

    def students_scope(self, user: User, groups: Sequence[Group]) -> ScopeDescriptor:
        return self.resolve(user, ScopedResource.STUDENTS, groups)

    def staff_scope(self, user: User) -> ScopeDescriptor:
        return self.resolve(user, ScopedResource.STAFF)

    def sessions_scope(self, user: User, groups: Sequence[Group]) -> ScopeDescriptor:
        return self.resolve(user, ScopedResource.SESSIONS, groups)

    @staticmethod
    def require_writable(scope: ScopeDescriptor) -> None:
        if scope.denied or not scope.writable:
            raise AuthorizationError("No tienes permiso para modificar estos registros")

    @staticmethod
    def ensure_allowed(scope: ScopeDescriptor, record: Any, *, message: str = "Registro fuera de tu alcance") -> None:
        if record is None or not scope.allows(record):
            raise AuthorizationError(message)
