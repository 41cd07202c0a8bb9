import json
from dataclasses import replace
from datetime import date, datetime, time, timedelta

import pytest

from src.academy_system.academy_system.access.resolver import AccessScopeResolver
from src.academy_system.academy_system.attendance.model import Session
from src.academy_system.academy_system.attendance.service import AttendanceEntry, AttendanceService
from src.academy_system.academy_system.core.enums import AttendanceStatus
from src.academy_system.academy_system.core.exceptions import AuthorizationError, ConfigurationError, ValidationError
from tests.fakes import InMemoryAttendance, ctx_for


@pytest.fixture
def setup(world, fixed_now):
    users, _, groups = world
    attendance = InMemoryAttendance(
        [
            Session(1, 100, 1, fixed_now.date(), time(9, 0), "qr-1"),
            Session(2, 200, 1, fixed_now.date(), time(9, 0), "qr-2"),
            Session(3, 900, 2, fixed_now.date(), time(9, 0), "qr-3"),
        ]
    )
    service = AttendanceService(attendance, users, groups, AccessScopeResolver(), grace_minutes=10)
    return users, attendance, service


def test_sessions_are_scoped(setup):
    users, _, svc = setup
    assert [s.session_id for s in svc.list_sessions(ctx_for(users.get_by_id(3)))] == [1]
    assert [s.session_id for s in svc.list_sessions(ctx_for(users.get_by_id(5)))] == [1, 2]
    assert [s.session_id for s in svc.list_sessions(ctx_for(users.get_by_id(8)))] == [2]


def test_cashier_cannot_create_sessions(setup):
    users, _, svc = setup
    with pytest.raises(AuthorizationError):
        svc.create_session(ctx_for(users.get_by_id(5)), group_id=100, session_date=date(2026, 3, 21), session_time=time(9, 0))


def test_teacher_creates_session_for_own_group(setup):
    users, attendance, svc = setup
    teacher = ctx_for(users.get_by_id(3))

    session_id = svc.create_session(teacher, group_id=100, session_date=date(2026, 3, 21), session_time=time(9, 0))
    assert attendance.sessions[session_id].qr_code_value

    with pytest.raises(AuthorizationError):
        svc.create_session(teacher, group_id=200, session_date=date(2026, 3, 21), session_time=time(9, 0))


def test_log_attendance_keeps_observation_only_for_absences(setup, fixed_now):
    users, attendance, svc = setup
    teacher = ctx_for(users.get_by_id(3))

    saved = svc.log_attendance(
        teacher,
        session_id=1,
        entries=[
            AttendanceEntry(6, AttendanceStatus.ABSENT, "  enfermo "),
            AttendanceEntry(7, AttendanceStatus.PRESENT, "llegó bien"),
        ],
        now=fixed_now,
    )

    assert saved == 2
    assert attendance.get_record(1, 6).observation == "enfermo"
    assert attendance.get_record(1, 7).observation is None

    with pytest.raises(ValidationError):
        svc.log_attendance(teacher, session_id=1, entries=[AttendanceEntry(8, AttendanceStatus.PRESENT)], now=fixed_now)


def test_student_qr_check_in(setup, fixed_now):
    users, _, svc = setup
    ana = ctx_for(users.get_by_id(6))

    record = svc.student_qr_check_in(ana, code="qr-1", now=fixed_now + timedelta(minutes=5))
    assert record.status == AttendanceStatus.PRESENT

    with pytest.raises(ValidationError):
        svc.student_qr_check_in(ana, code="qr-1", now=fixed_now)

    late = svc.student_qr_check_in(ctx_for(users.get_by_id(7)), code="qr-1", now=fixed_now + timedelta(minutes=25))
    assert late.status == AttendanceStatus.LATE


def test_student_qr_check_in_rejects_other_groups_and_institutions(setup, fixed_now):
    users, _, svc = setup
    ana = ctx_for(users.get_by_id(6))
    with pytest.raises(AuthorizationError):
        svc.student_qr_check_in(ana, code="qr-2", now=fixed_now)
    with pytest.raises(ValidationError):
        svc.student_qr_check_in(ana, code="qr-3", now=fixed_now)
    with pytest.raises(AuthorizationError):
        svc.student_qr_check_in(ctx_for(users.get_by_id(3)), code="qr-1", now=fixed_now)


def test_student_qr_check_in_needs_the_session_code(setup, fixed_now):
    users, attendance, svc = setup
    ana = ctx_for(users.get_by_id(6))
    for code in ("1", "", "qr-404"):
        with pytest.raises(ValidationError):
            svc.student_qr_check_in(ana, code=code, now=fixed_now)
    assert attendance.get_record(1, 6) is None

    svc.student_qr_check_in(ana, code=" qr-1 ", now=fixed_now)
    assert attendance.get_record(1, 6).status == AttendanceStatus.PRESENT


def test_staff_qr_check_in_once_per_day(setup, fixed_now):
    users, attendance, svc = setup
    payload = svc.staff_qr_payload(ctx_for(users.get_by_id(2)), today=fixed_now.date())
    assert payload == {"type": "teacher-attendance", "institutionId": 1, "sedeId": 10, "date": "2026-03-14"}

    teacher = ctx_for(users.get_by_id(3))
    checkin = svc.staff_qr_check_in(teacher, payload=json.dumps(payload), now=fixed_now)
    assert checkin.sede_id == 10
    assert checkin.code_used == "QR_SCAN"

    with pytest.raises(ValidationError):
        svc.staff_qr_check_in(teacher, payload=payload, now=fixed_now)


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        {"type": "other", "institutionId": 1, "sedeId": None, "date": "2026-03-14"},
        {"type": "teacher-attendance", "institutionId": 2, "sedeId": None, "date": "2026-03-14"},
        {"type": "teacher-attendance", "institutionId": 1, "sedeId": None, "date": "2026-03-13"},
        {"type": "teacher-attendance", "institutionId": 1, "sedeId": 20, "date": "2026-03-14"},
    ],
)
def test_staff_qr_check_in_rejects_bad_codes(setup, fixed_now, payload):
    users, _, svc = setup
    with pytest.raises(ValidationError):
        svc.staff_qr_check_in(ctx_for(users.get_by_id(3)), payload=payload, now=fixed_now)


def test_students_and_cashiers_do_not_use_staff_check_in(setup, fixed_now):
    users, _, svc = setup
    payload = {"type": "teacher-attendance", "institutionId": 1, "sedeId": None, "date": "2026-03-14"}
    for user_id in (5, 6):
        with pytest.raises(AuthorizationError):
            svc.staff_qr_check_in(ctx_for(users.get_by_id(user_id)), payload=payload, now=fixed_now)


def test_staff_report_is_scoped_to_supervisor_sede(setup, fixed_now):
    users, _, svc = setup
    payload = {"type": "teacher-attendance", "institutionId": 1, "sedeId": None, "date": "2026-03-14"}
    svc.staff_qr_check_in(ctx_for(users.get_by_id(3)), payload=payload, now=fixed_now)
    svc.staff_qr_check_in(ctx_for(users.get_by_id(4)), payload=payload, now=fixed_now)

    report = svc.staff_attendance_report(ctx_for(users.get_by_id(2)), start=fixed_now.date(), end=fixed_now.date())
    assert [c.user_id for c in report] == [3]

    admin_report = svc.staff_attendance_report(ctx_for(users.get_by_id(1)), start=fixed_now.date(), end=fixed_now.date())
    assert {c.user_id for c in admin_report} == {3, 4}

    with pytest.raises(ValidationError):
        svc.staff_attendance_report(ctx_for(users.get_by_id(1)), start=date(2026, 3, 20), end=date(2026, 3, 1))


def test_history_requires_an_institution(setup):
    users, attendance, svc = setup
    attendance.create_record(
        session_id=1, user_id=6, institution_id=1, status=AttendanceStatus.PRESENT, timestamp=datetime(2026, 3, 14, 9, 0)
    )
    ana = users.get_by_id(6)
    assert len(svc.my_attendance(ctx_for(ana))) == 1

    orphan = replace(ana, institution_id=None)
    with pytest.raises(ConfigurationError):
        svc.my_attendance(ctx_for(orphan))
    with pytest.raises(ConfigurationError):
        svc.my_check_ins(ctx_for(replace(users.get_by_id(3), institution_id=None)))
