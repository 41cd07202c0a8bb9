from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..access.scope import ScopeDescriptor
from ..core.enums import Role, StudentLevel
from .model import User


class UserRepository(Protocol):
    """Repository interface for users (staff and students).

    Services depend on this interface, never on a concrete database.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def list_in_scope(self, scope: ScopeDescriptor) -> Sequence[User]:
        """Active users matching a STUDENTS or STAFF scope."""

        raise NotImplementedError

    def list_by_ids(self, user_ids: Iterable[int]) -> Sequence[User]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        name: str,
        username: str,
        email: Optional[str],
        password_hash: str,
        role: Role,
        institution_id: int,
        sede_id: Optional[int],
        level: Optional[StudentLevel] = None,
        phone_number: Optional[str] = None,
        requires_password_change: bool = False,
    ) -> int:
        raise NotImplementedError

    def update_password(self, user_id: int, *, password_hash: str, requires_password_change: bool = False) -> bool:
        raise NotImplementedError

    def update_role(self, user_id: int, *, role: Role, sede_id: Optional[int]) -> bool:
        raise NotImplementedError

    def update_profile(
        self,
        user_id: int,
        *,
        name: str,
        phone_number: Optional[str],
        level: Optional[StudentLevel],
        sede_id: Optional[int],
    ) -> bool:
        raise NotImplementedError

    def deactivate_and_unassign(self, user_id: int) -> bool:
        """Soft delete: deactivate and drop every relation pointing at the user.

        Teacher assignments, group memberships and sede supervision are cleared
        in the same transaction; the user row itself is kept.
        """

        raise NotImplementedError
