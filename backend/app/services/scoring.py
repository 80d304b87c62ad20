from __future__ import annotations

from dataclasses import dataclass

from app.models.evaluation import Classification, EvaluationRecord

# Checked top-down, first match wins.
CLASSIFICATION_THRESHOLDS: tuple[tuple[float, Classification], ...] = (
    (4.5, "A"),
    (3.5, "B"),
    (2.5, "C"),
)

CLASSIFICATION_LABELS: dict[Classification, str] = {
    "A": "Excellence",
    "B": "Meets standard",
    "C": "Improving",
    "D": "Needs retraining",
}


@dataclass(frozen=True)
class ScoreAggregate:
    average_score: float
    classification: Classification


def classify(average_score: float) -> Classification:
    for threshold, classification in CLASSIFICATION_THRESHOLDS:
        if average_score >= threshold:
            return classification
    return "D"


def aggregate(record: EvaluationRecord) -> ScoreAggregate:
    scores = record.scores
    average_score = sum(scores) / len(scores)
    return ScoreAggregate(
        average_score=average_score,
        classification=classify(average_score),
    )
