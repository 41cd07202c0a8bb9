from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role, StudentLevel


@dataclass(frozen=True)
class User:
    """Entidad de dominio: Identity (usuario con sesión).

    Students are users with ``role=STUDENT``; their grades live in the grading
    module, keyed by ``user_id``. ``sede_id`` only means something for admin,
    supervisor and teacher accounts.
    """

    user_id: int
    name: str
    username: str
    role: Role
    institution_id: Optional[int]
    sede_id: Optional[int] = None
    email: Optional[str] = None
    password_hash: str = ""
    phone_number: Optional[str] = None
    level: Optional[StudentLevel] = None
    requires_password_change: bool = False
    is_active: bool = True
