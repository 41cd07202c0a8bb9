import pytest

from src.academy_system.academy_system.access.resolver import AccessScopeResolver
from src.academy_system.academy_system.core.enums import Role
from src.academy_system.academy_system.core.exceptions import AuthorizationError, ValidationError
from src.academy_system.academy_system.grading.config_service import GradingConfigService
from src.academy_system.academy_system.grading.model import (
    DEFAULT_GRADING_CONFIG,
    GradingConfiguration,
    PartialScores,
)
from tests.fakes import InMemoryGradingConfigs, ctx_for, make_user


def test_from_mapping_falls_back_per_field():
    config = GradingConfiguration.from_mapping(
        {"numberOfPartials": 7, "passingGrade": 60, "maxExamScore": "cincuenta", "maxTotalAccumulatedScore": True}
    )
    assert config.number_of_partials == 3
    assert config.passing_grade == 60
    assert config.max_exam_score == 50
    assert config.max_total_accumulated_score == 50


def test_from_mapping_empty_is_default():
    assert GradingConfiguration.from_mapping(None) == DEFAULT_GRADING_CONFIG
    assert GradingConfiguration.from_mapping({}) == DEFAULT_GRADING_CONFIG


def test_to_dict_round_trips_through_from_mapping():
    config = GradingConfiguration(number_of_partials=2, passing_grade=65, max_exam_score=40)
    assert GradingConfiguration.from_mapping(config.to_dict()) == config


def test_partial_scores_document_shape():
    doc = {"accumulatedActivities": [{"name": "Tarea", "score": 10}], "exam": {"name": "Final", "score": 30}}
    scores = PartialScores.from_dict(doc)
    assert scores.accumulated_activities[0].score == 10
    assert scores.exam.name == "Final"
    assert scores.to_dict() == doc


def test_load_is_cached_per_institution():
    repo = InMemoryGradingConfigs({1: {"numberOfPartials": 2, "passingGrade": 60}})
    service = GradingConfigService(repo, AccessScopeResolver())

    first = service.load(1)
    second = service.load(1)

    assert first.number_of_partials == 2
    assert first is second
    assert repo.reads == 1


def test_load_missing_document_uses_defaults():
    service = GradingConfigService(InMemoryGradingConfigs(), AccessScopeResolver())
    assert service.load(1) == DEFAULT_GRADING_CONFIG


def test_load_storage_failure_uses_defaults_and_logs(caplog):
    service = GradingConfigService(InMemoryGradingConfigs(fail=True), AccessScopeResolver())
    with caplog.at_level("WARNING"):
        assert service.load(1) == DEFAULT_GRADING_CONFIG
    assert "using defaults" in caplog.text


def test_update_requires_admin():
    service = GradingConfigService(InMemoryGradingConfigs(), AccessScopeResolver())
    teacher = make_user(3, Role.TEACHER, sede_id=10)
    with pytest.raises(AuthorizationError):
        service.update(ctx_for(teacher), {"numberOfPartials": 2})


def test_update_validates_strictly_and_refreshes_cache():
    repo = InMemoryGradingConfigs()
    service = GradingConfigService(repo, AccessScopeResolver())
    admin = ctx_for(make_user(1, Role.ADMIN))
    service.load(1)

    with pytest.raises(ValidationError):
        service.update(admin, {"numberOfPartials": 5, "passingGrade": 70, "maxIndividualActivityScore": 50,
                               "maxTotalAccumulatedScore": 50, "maxExamScore": 50})
    with pytest.raises(ValidationError):
        service.update(admin, {"numberOfPartials": 2, "passingGrade": "x", "maxIndividualActivityScore": 50,
                               "maxTotalAccumulatedScore": 50, "maxExamScore": 50})

    config = service.update(admin, {"numberOfPartials": "2", "passingGrade": 60, "maxIndividualActivityScore": 20,
                                    "maxTotalAccumulatedScore": 40, "maxExamScore": 60})
    assert config.number_of_partials == 2
    assert repo.docs[1]["maxExamScore"] == 60
    assert service.load(1) == config
