"""
Test Scorer Core - objective-weighted scoring of a completed attempt.

    accuracy_o = correct_o / total_o            (0 when total_o == 0)
    score      = sum(w_o * accuracy_o) / sum(w_o)   over objectives present
    passed     = score >= passing_score

Scoring is a pure function of the graded answers and the exam blueprint, so
re-scoring the same attempt always yields the same result.
"""

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from assessment_engine.core.errors import ValidationError
from assessment_engine.learning_engine.contracts import ExamConfig


@dataclass(frozen=True)
class GradedItem:
    """One attempt question; ``correct`` is None when it was never answered."""

    question_id: UUID
    objective_id: UUID
    correct: bool | None


@dataclass
class ObjectiveTally:
    objective_id: UUID
    weight: float
    correct: int = 0
    total: int = 0

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "objective_id": str(self.objective_id),
            "correct": self.correct,
            "total": self.total,
            "percentage": round(self.accuracy * 100.0, 2),
            "weight": self.weight,
        }


@dataclass
class ScoreResult:
    score: float
    passed: bool
    correct_count: int
    incorrect_count: int
    skipped_count: int
    breakdown: list[ObjectiveTally] = field(default_factory=list)


def score_attempt(exam: ExamConfig, items: list[GradedItem]) -> ScoreResult:
    """
    Score graded attempt items against an exam blueprint.

    Unanswered items count as incorrect for accuracy and are reported as
    skipped. Objectives with no questions in the attempt do not enter the
    denominator.

    Raises:
        ValidationError: An item belongs to an objective outside the exam
    """
    tallies = {o.objective_id: ObjectiveTally(o.objective_id, o.weight) for o in exam.objectives}

    correct_count = incorrect_count = skipped_count = 0
    for item in items:
        tally = tallies.get(item.objective_id)
        if tally is None:
            raise ValidationError(
                "Attempt question belongs to an objective outside the exam",
                {"question_id": str(item.question_id), "objective_id": str(item.objective_id)},
            )
        tally.total += 1
        if item.correct is None:
            skipped_count += 1
        elif item.correct:
            tally.correct += 1
            correct_count += 1
        else:
            incorrect_count += 1

    present = [t for t in tallies.values() if t.total > 0]
    weight_sum = sum(t.weight for t in present)
    score = sum(t.weight * t.accuracy for t in present) / weight_sum if weight_sum > 0 else 0.0
    score = max(0.0, min(1.0, score))

    return ScoreResult(
        score=score,
        passed=score >= exam.passing_score,
        correct_count=correct_count,
        incorrect_count=incorrect_count,
        skipped_count=skipped_count,
        breakdown=present,
    )
