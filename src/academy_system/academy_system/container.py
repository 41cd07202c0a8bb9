from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .access.resolver import AccessScopeResolver
from .attendance.factory import CheckInStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_LATE_GRACE_MINUTES
from .database.connection import DBConfig, DatabaseConnection
from .grading.config_service import GradingConfigService
from .grading.mysql_grade_repository import MySQLGradeRepository, MySQLGradingConfigRepository
from .grading.repository import GradeRepository, GradingConfigRepository
from .grading.service import GradeReportService
from .groups.mysql_group_repository import MySQLGroupRepository
from .groups.repository import GroupRepository
from .groups.service import GroupService
from .sedes.mysql_sede_repository import MySQLSedeRepository
from .sedes.repository import SedeRepository
from .sedes.service import SedeService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    sedes_repo: SedeRepository
    groups_repo: GroupRepository
    grades_repo: GradeRepository
    grading_config_repo: GradingConfigRepository
    attendance_repo: AttendanceRepository

    resolver: AccessScopeResolver
    auth_service: AuthService
    user_service: UserService
    sede_service: SedeService
    group_service: GroupService
    grading_config_service: GradingConfigService
    grade_report_service: GradeReportService
    attendance_service: AttendanceService


def wire_container(
    *,
    conn: Optional[DatabaseConnection],
    users_repo: UserRepository,
    sedes_repo: SedeRepository,
    groups_repo: GroupRepository,
    grades_repo: GradeRepository,
    grading_config_repo: GradingConfigRepository,
    attendance_repo: AttendanceRepository,
    grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES,
) -> Container:
    """Build every service on top of the given repositories."""

    resolver = AccessScopeResolver()
    return Container(
        conn=conn,
        users_repo=users_repo,
        sedes_repo=sedes_repo,
        groups_repo=groups_repo,
        grades_repo=grades_repo,
        grading_config_repo=grading_config_repo,
        attendance_repo=attendance_repo,
        resolver=resolver,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo, groups_repo, sedes_repo, resolver),
        sede_service=SedeService(sedes_repo, users_repo, resolver),
        group_service=GroupService(groups_repo, users_repo, sedes_repo, resolver),
        grading_config_service=GradingConfigService(grading_config_repo, resolver),
        grade_report_service=GradeReportService(grades_repo, users_repo, groups_repo, resolver),
        attendance_service=AttendanceService(
            attendance_repo,
            users_repo,
            groups_repo,
            resolver,
            strategy_factory=CheckInStrategyFactory(),
            grace_minutes=grace_minutes,
        ),
    )


def build_container(*, db_config: dict, grace_minutes: int = DEFAULT_LATE_GRACE_MINUTES) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire_container(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        sedes_repo=MySQLSedeRepository(conn),
        groups_repo=MySQLGroupRepository(conn),
        grades_repo=MySQLGradeRepository(conn),
        grading_config_repo=MySQLGradingConfigRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        grace_minutes=grace_minutes,
    )
