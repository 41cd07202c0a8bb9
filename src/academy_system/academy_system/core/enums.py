from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Rol del usuario usado para la autorización."""

    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    TEACHER = "teacher"
    CAJA = "caja"
    STUDENT = "student"

    @property
    def is_staff(self) -> bool:
        return self != Role.STUDENT

    @property
    def carries_sede(self) -> bool:
        """Only these roles may hold a sede affiliation."""
        return self in {Role.ADMIN, Role.SUPERVISOR, Role.TEACHER}


class ScopedResource(str, Enum):
    GROUPS = "groups"
    STUDENTS = "students"
    STAFF = "staff"
    SESSIONS = "sessions"


class GradeStatus(str, Enum):
    """Clasificación de una nota parcial o final."""

    PASSING = "PASSING"
    FAILING = "FAILING"
    NOT_GRADABLE = "NOT_GRADABLE"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class GroupType(str, Enum):
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class StudentLevel(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    OTHER = "Other"
