from dataclasses import replace

import pytest

from src.academy_system.academy_system.access.resolver import AccessScopeResolver
from src.academy_system.academy_system.core.enums import Role
from src.academy_system.academy_system.core.exceptions import AuthorizationError, ValidationError
from src.academy_system.academy_system.sedes.service import SedeService
from tests.fakes import ctx_for, make_user


@pytest.fixture
def service(world):
    users, sedes, _ = world
    return users, sedes, SedeService(sedes, users, AccessScopeResolver())


def test_only_admins_manage_sedes(service):
    users, _, svc = service
    with pytest.raises(AuthorizationError):
        svc.save_sede(ctx_for(users.get_by_id(2)), name="Sede Este")


def test_create_sede_links_supervisor(service):
    users, sedes, svc = service
    users.add(make_user(12, Role.SUPERVISOR, sede_id=None))

    sede_id = svc.save_sede(ctx_for(users.get_by_id(1)), name="Sede Este", supervisor_id=12)

    assert sedes.get_by_id(sede_id).supervisor_id == 12
    assert users.get_by_id(12).sede_id == sede_id


def test_reassigning_supervisor_releases_previous_sede(service):
    users, sedes, svc = service

    svc.save_sede(ctx_for(users.get_by_id(1)), sede_id=20, name="Sede Sur", supervisor_id=2)

    plan = sedes.saved_plans[-1]
    assert plan.released_sede_ids == (10,)
    assert sedes.get_by_id(10).supervisor_id is None
    assert sedes.get_by_id(20).supervisor_id == 2
    assert users.get_by_id(2).sede_id == 20


def test_replacing_supervisor_clears_old_supervisor_link(service):
    users, sedes, svc = service
    users.add(make_user(12, Role.SUPERVISOR, sede_id=None))

    svc.save_sede(ctx_for(users.get_by_id(1)), sede_id=10, name="Sede Norte", supervisor_id=12)

    assert sedes.saved_plans[-1].cleared_user_ids == (2,)
    assert users.get_by_id(2).sede_id is None
    assert users.get_by_id(12).sede_id == 10


def test_supervisor_must_be_an_active_supervisor_of_the_institution(service):
    users, _, svc = service
    admin = ctx_for(users.get_by_id(1))
    with pytest.raises(ValidationError):
        svc.save_sede(admin, name="X", supervisor_id=3)
    users.add(replace(users.get_by_id(2), is_active=False))
    with pytest.raises(ValidationError):
        svc.save_sede(admin, name="X", supervisor_id=2)


def test_cannot_touch_another_institutions_sede(service):
    users, _, svc = service
    with pytest.raises(ValidationError):
        svc.delete_sede(ctx_for(users.get_by_id(1)), sede_id=90)


def test_delete_sede(service):
    users, sedes, svc = service
    svc.delete_sede(ctx_for(users.get_by_id(1)), sede_id=20)
    assert sedes.get_by_id(20) is None
