"""Example: grade aggregation without Flask or a database.

Services and the calculator are plain Python; controllers are a thin layer on top.
"""

from src.academy_system.academy_system.grading.calculator.standard_calculator import (
    StandardGradeCalculator,
    format_score,
)
from src.academy_system.academy_system.grading.model import GradingConfiguration, PartialScores


def main():
    config = GradingConfiguration(number_of_partials=3)
    grades = {
        "partial1": PartialScores.from_dict(
            {"accumulatedActivities": [{"name": "Tarea 1", "score": 30}, {"name": "Tarea 2", "score": 25}],
             "exam": {"name": "Examen", "score": 40}}
        ),
        "partial2": PartialScores.from_dict({"accumulatedActivities": [{"score": 40}], "exam": {"score": 45}}),
    }

    summary = StandardGradeCalculator().summarize(student_id=1, name="Ana", grades=grades, config=config)
    print("partials:", [format_score(t) for t in summary.partial_totals])
    print("final:", format_score(summary.final_grade, final=True), summary.status.value)


if __name__ == "__main__":
    main()
