import pytest

from src.academy_system.academy_system.access.resolver import AccessScopeResolver
from src.academy_system.academy_system.core.enums import GradeStatus
from src.academy_system.academy_system.core.exceptions import AuthorizationError, ValidationError
from src.academy_system.academy_system.grading.model import GradingConfiguration
from src.academy_system.academy_system.grading.service import GradeReportService
from tests.fakes import InMemoryGrades, ctx_for

GRADES = {
    6: {
        "partial1": {"accumulatedActivities": [{"score": 30}, {"score": 25}], "exam": {"score": 40}},
        "partial2": {"accumulatedActivities": [{"score": 40}], "exam": {"score": 45}},
    },
    7: {"partial1": {"accumulatedActivities": [{"score": "x"}], "exam": None}},
}


@pytest.fixture
def service(world):
    users, _, groups = world
    grades = InMemoryGrades(GRADES)
    return users, grades, GradeReportService(grades, users, groups, AccessScopeResolver())


def test_report_for_teacher_covers_own_students(service):
    users, _, svc = service
    config = GradingConfiguration(number_of_partials=2)

    report = svc.build_partial_report(ctx_for(users.get_by_id(3), grading_config=config))

    by_student = {s.student_id: s for s in report.summaries}
    assert set(by_student) == {6, 7}
    assert by_student[6].partial_totals == (90, 85)
    assert by_student[6].final_grade == 87.5
    assert by_student[6].status == GradeStatus.PASSING
    assert by_student[7].partial_totals == (None, None)
    assert by_student[7].status == GradeStatus.NOT_GRADABLE

    rows = [r for r in report.rows if r.student_id == 6 and r.partial_number == 1]
    assert rows[0].activity_scores == (30, 25, None, None, None)
    assert rows[0].accumulated_total == 50
    assert len(report.rows) == 4


def test_report_group_filter_outside_scope_is_rejected(service):
    users, _, svc = service
    with pytest.raises(AuthorizationError):
        svc.build_partial_report(ctx_for(users.get_by_id(3)), group_id=200)


def test_student_reads_only_own_grades(service):
    users, _, svc = service
    student = ctx_for(users.get_by_id(6))

    report = svc.build_partial_report(student)
    assert [s.student_id for s in report.summaries] == [6]
    with pytest.raises(AuthorizationError):
        svc.get_student_grades(student, student_id=7)


def test_cashier_has_no_grade_access(service):
    users, _, svc = service
    with pytest.raises(AuthorizationError):
        svc.build_partial_report(ctx_for(users.get_by_id(5)))


def test_save_grades_validates_and_returns_summary(service):
    users, grades, svc = service
    teacher = ctx_for(users.get_by_id(3), grading_config=GradingConfiguration(number_of_partials=2))

    summary = svc.save_grades(
        teacher,
        student_id=7,
        partials={
            "partial1": {"accumulatedActivities": [{"name": "Tarea", "score": "20"}], "exam": {"score": 50}},
            "partial2": {"accumulatedActivities": [{"score": ""}], "exam": {"score": 30}},
        },
    )

    assert summary.partial_totals == (70, 30)
    assert summary.final_grade == 50
    assert grades.docs[7]["partial1"].accumulated_activities[0].score == 20
    assert grades.docs[7]["partial2"].accumulated_activities[0].score is None


@pytest.mark.parametrize(
    "partials",
    [
        {"partial1": {"accumulatedActivities": [{"score": 51}]}},
        {"partial1": {"exam": {"score": -1}}},
        {"partial1": {"accumulatedActivities": [{"score": "abc"}]}},
        {"partial1": {"accumulatedActivities": [{"score": 1}] * 6}},
        {"partial4": {"exam": {"score": 10}}},
        {},
    ],
)
def test_save_grades_rejects_invalid_input(service, partials):
    users, _, svc = service
    with pytest.raises(ValidationError):
        svc.save_grades(ctx_for(users.get_by_id(1)), student_id=6, partials=partials)


def test_students_cannot_write_grades(service):
    users, _, svc = service
    with pytest.raises(AuthorizationError):
        svc.save_grades(ctx_for(users.get_by_id(6)), student_id=6, partials={"partial1": {"exam": {"score": 50}}})


def test_teacher_cannot_write_grades_of_other_groups(service):
    users, _, svc = service
    with pytest.raises(AuthorizationError):
        svc.save_grades(ctx_for(users.get_by_id(3)), student_id=8, partials={"partial1": {"exam": {"score": 50}}})


def test_deactivated_students_take_no_new_grades(service):
    users, grades, svc = service
    users.deactivate_and_unassign(7)

    with pytest.raises(ValidationError):
        svc.save_grades(ctx_for(users.get_by_id(1)), student_id=7, partials={"partial1": {"exam": {"score": 50}}})
    assert grades.get_grades(7)["partial1"].exam is None
