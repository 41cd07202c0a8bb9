import math

import pytest

from src.academy_system.academy_system.core.enums import GradeStatus
from src.academy_system.academy_system.grading.calculator.standard_calculator import (
    StandardGradeCalculator,
    format_score,
)
from src.academy_system.academy_system.grading.model import (
    DEFAULT_GRADING_CONFIG,
    ActivityScore,
    ExamScore,
    GradingConfiguration,
    PartialScores,
)

calc = StandardGradeCalculator()


def acts(*scores):
    return tuple(ActivityScore(score=s) for s in scores)


def test_accumulated_total_is_null_without_numeric_scores():
    assert calc.accumulated_total([], DEFAULT_GRADING_CONFIG) is None
    assert calc.accumulated_total(acts(None, None), DEFAULT_GRADING_CONFIG) is None


def test_accumulated_total_clamps_to_configured_maximum():
    assert calc.accumulated_total(acts(30, 25), DEFAULT_GRADING_CONFIG) == 50


def test_accumulated_total_ignores_malformed_entries_but_keeps_zero():
    assert calc.accumulated_total(acts("abc", True, float("nan"), -5, 10), DEFAULT_GRADING_CONFIG) == 10
    assert calc.accumulated_total(acts(0), DEFAULT_GRADING_CONFIG) == 0


def test_accumulated_total_counts_only_first_five_activities():
    assert calc.accumulated_total(acts(1, 1, 1, 1, 1, 40), DEFAULT_GRADING_CONFIG) == 5


def test_partial_total_combines_accumulated_and_exam():
    scores = PartialScores(accumulated_activities=acts(40), exam=ExamScore(score=45))
    assert calc.partial_total(scores, DEFAULT_GRADING_CONFIG) == 85


def test_partial_total_is_null_when_both_parts_missing():
    assert calc.partial_total(PartialScores(accumulated_activities=(), exam=None), DEFAULT_GRADING_CONFIG) is None
    assert calc.partial_total(None, DEFAULT_GRADING_CONFIG) is None


def test_partial_total_treats_missing_part_as_zero():
    assert calc.partial_total(PartialScores(exam=ExamScore(score=30)), DEFAULT_GRADING_CONFIG) == 30
    assert calc.partial_total(PartialScores(accumulated_activities=acts(20)), DEFAULT_GRADING_CONFIG) == 20


def test_partial_total_is_clamped_to_partial_maximum():
    config = GradingConfiguration(max_total_accumulated_score=50, max_exam_score=50)
    scores = PartialScores(accumulated_activities=acts(50, 50), exam=ExamScore(score=80))
    assert calc.partial_total(scores, config) == 100


def test_final_grade_requires_every_partial():
    config = GradingConfiguration(number_of_partials=3)
    assert calc.final_grade([85, None, 70], config) is None
    assert calc.final_grade([85, 90], config) is None


def test_final_grade_is_mean_and_classified():
    config = GradingConfiguration(number_of_partials=3)
    final = calc.final_grade([85, 90, 70], config)
    assert math.isclose(final, 245 / 3)
    assert calc.classify(final, config) == GradeStatus.PASSING


def test_single_partial_final_grade_equals_partial_total():
    config = GradingConfiguration(number_of_partials=1)
    assert calc.final_grade([73.5], config) == 73.5


@pytest.mark.parametrize(
    "total,expected",
    [(None, GradeStatus.NOT_GRADABLE), (69.99, GradeStatus.FAILING), (70, GradeStatus.PASSING), (0, GradeStatus.FAILING)],
)
def test_classify(total, expected):
    assert calc.classify(total, DEFAULT_GRADING_CONFIG) == expected


def test_summarize_is_pure_and_repeatable():
    config = GradingConfiguration(number_of_partials=2)
    grades = {
        "partial1": PartialScores(accumulated_activities=acts(30, 25), exam=ExamScore(score=40)),
        "partial2": PartialScores(accumulated_activities=acts(20), exam=ExamScore(score=10)),
    }

    first = calc.summarize(student_id=6, name="Ana", grades=grades, config=config)
    second = calc.summarize(student_id=6, name="Ana", grades=grades, config=config)

    assert first == second
    assert first.accumulated_totals == (50, 20)
    assert first.partial_totals == (90, 30)
    assert first.final_grade == 60
    assert first.status == GradeStatus.FAILING
    assert first.partial_statuses == (GradeStatus.PASSING, GradeStatus.FAILING)


def test_summarize_without_grades_is_not_gradable():
    summary = calc.summarize(student_id=7, name="Beto", grades={}, config=DEFAULT_GRADING_CONFIG)
    assert summary.partial_totals == (None, None, None)
    assert summary.final_grade is None
    assert summary.status == GradeStatus.NOT_GRADABLE


def test_format_score():
    assert format_score(None) == "N/A"
    assert format_score(None, final=True) == "N/A"
    assert format_score(85) == "85"
    assert format_score(42.5) == "42.5"
    assert format_score(245 / 3, final=True) == "81.67"
