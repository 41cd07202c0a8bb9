from datetime import date

import pytest

from src.academy_system.academy_system.access.resolver import AccessScopeResolver
from src.academy_system.academy_system.core.enums import GroupType
from src.academy_system.academy_system.core.exceptions import AuthorizationError, ValidationError
from src.academy_system.academy_system.groups.service import GroupService
from tests.fakes import ctx_for


@pytest.fixture
def service(world):
    users, sedes, groups = world
    return users, groups, GroupService(groups, users, sedes, AccessScopeResolver())


def test_list_groups_is_scoped(service):
    users, _, svc = service
    assert [g.group_id for g in svc.list_groups(ctx_for(users.get_by_id(1)))] == [200, 100]
    assert [g.group_id for g in svc.list_groups(ctx_for(users.get_by_id(2)))] == [100]
    with pytest.raises(AuthorizationError):
        svc.list_groups(ctx_for(users.get_by_id(5)))


def test_supervisor_creates_group_in_own_sede(service):
    users, groups, svc = service
    group_id = svc.create_group(
        ctx_for(users.get_by_id(2)),
        name="Sábado C",
        group_type=GroupType.SATURDAY,
        start_date=date(2026, 4, 4),
        sede_id=20,
        teacher_id=3,
    )
    created = groups.get_by_id(group_id)
    assert created.sede_id == 10
    assert created.teacher_id == 3
    assert created.institution_id == 1


def test_supervisor_cannot_assign_teacher_from_other_sede(service):
    users, _, svc = service
    with pytest.raises(AuthorizationError):
        svc.assign_teacher(ctx_for(users.get_by_id(2)), group_id=100, teacher_id=4)


def test_teacher_cannot_create_groups(service):
    users, _, svc = service
    with pytest.raises(AuthorizationError):
        svc.create_group(
            ctx_for(users.get_by_id(3)), name="X", group_type=GroupType.SUNDAY, start_date=date(2026, 4, 5)
        )


def test_end_date_before_start_is_rejected(service):
    users, _, svc = service
    with pytest.raises(ValidationError):
        svc.create_group(
            ctx_for(users.get_by_id(1)),
            name="X",
            group_type=GroupType.SUNDAY,
            start_date=date(2026, 4, 5),
            end_date=date(2026, 4, 1),
        )


def test_teacher_assigns_students_to_own_group_only(service):
    users, groups, svc = service
    teacher = ctx_for(users.get_by_id(3))

    svc.assign_students(teacher, group_id=100, student_ids=[6, 8])
    assert groups.get_by_id(100).student_ids == frozenset({6, 8})

    with pytest.raises(AuthorizationError):
        svc.assign_students(teacher, group_id=200, student_ids=[6])


def test_assign_students_rejects_staff_and_foreign_students(service):
    users, _, svc = service
    admin = ctx_for(users.get_by_id(1))
    with pytest.raises(ValidationError):
        svc.assign_students(admin, group_id=100, student_ids=[3])
    with pytest.raises(ValidationError):
        svc.assign_students(admin, group_id=100, student_ids=[51])


def test_student_cannot_modify_groups(service):
    users, _, svc = service
    with pytest.raises(AuthorizationError):
        svc.assign_students(ctx_for(users.get_by_id(6)), group_id=100, student_ids=[6])


def test_delete_group_is_admin_only(service):
    users, groups, svc = service
    with pytest.raises(AuthorizationError):
        svc.delete_group(ctx_for(users.get_by_id(2)), group_id=100)
    with pytest.raises(AuthorizationError):
        svc.delete_group(ctx_for(users.get_by_id(1)), group_id=900)

    svc.delete_group(ctx_for(users.get_by_id(1)), group_id=100)
    assert groups.get_by_id(100) is None
