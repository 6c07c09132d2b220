"""Typed contracts for learning engine inputs/outputs."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from assessment_engine.learning_engine.config import (
    DIFFICULTY_MAX,
    DIFFICULTY_MIN,
    EXAM_DEFAULT_PASSING_SCORE,
    EXAM_DEFAULT_QUESTION_COUNT,
    EXAM_DEFAULT_TIME_LIMIT_MINUTES,
    OBJECTIVE_WEIGHT_TOLERANCE,
)
from assessment_engine.models.session import StudyMode

# ============================================================================
# Exam configuration
# ============================================================================


class ObjectiveWeight(BaseModel):
    """Share of an exam carried by one objective."""

    model_config = ConfigDict(frozen=True)

    objective_id: UUID
    weight: float = Field(..., gt=0.0, le=1.0)


class ExamConfig(BaseModel):
    """Validated exam blueprint used by selection, scoring and readiness."""

    model_config = ConfigDict(frozen=True)

    exam_id: UUID
    passing_score: float = Field(default=EXAM_DEFAULT_PASSING_SCORE.value, ge=0.0, le=1.0)
    question_count: int = Field(default=EXAM_DEFAULT_QUESTION_COUNT.value, ge=1)
    time_limit_minutes: int = Field(default=EXAM_DEFAULT_TIME_LIMIT_MINUTES.value, ge=1)
    objectives: tuple[ObjectiveWeight, ...]

    @model_validator(mode="after")
    def validate_weights(self) -> "ExamConfig":
        if not self.objectives:
            raise ValueError("exam has no objectives")
        ids = [o.objective_id for o in self.objectives]
        if len(set(ids)) != len(ids):
            raise ValueError("duplicate objective ids")
        total = sum(o.weight for o in self.objectives)
        if abs(total - 1.0) > OBJECTIVE_WEIGHT_TOLERANCE.value:
            raise ValueError(f"objective weights must sum to 1.0, got {total:.6f}")
        return self

    def weight_of(self, objective_id: UUID) -> float:
        for objective in self.objectives:
            if objective.objective_id == objective_id:
                return objective.weight
        raise KeyError(objective_id)


class DifficultyBand(BaseModel):
    """Inclusive difficulty range."""

    model_config = ConfigDict(frozen=True)

    low: int = Field(..., ge=DIFFICULTY_MIN.value, le=DIFFICULTY_MAX.value)
    high: int = Field(..., ge=DIFFICULTY_MIN.value, le=DIFFICULTY_MAX.value)

    @model_validator(mode="after")
    def validate_order(self) -> "DifficultyBand":
        if self.low > self.high:
            raise ValueError("band low must not exceed high")
        return self

    def contains(self, difficulty: int) -> bool:
        return self.low <= difficulty <= self.high


# ============================================================================
# Study sessions
# ============================================================================


class SessionConfig(BaseModel):
    """Options for a new study session."""

    model_config = ConfigDict(extra="forbid")

    mode: StudyMode = StudyMode.PRACTICE
    objective_ids: list[UUID] | None = None
    target_difficulty: int | None = Field(default=None, ge=DIFFICULTY_MIN.value, le=DIFFICULTY_MAX.value)

    @field_validator("objective_ids")
    @classmethod
    def validate_objective_ids(cls, v: list[UUID] | None) -> list[UUID] | None:
        if v is None:
            return v
        if not v:
            raise ValueError("objective_ids must not be empty when provided")
        # Preserve order, drop duplicates
        return list(dict.fromkeys(v))


class AnswerResult(BaseModel):
    """Outcome of a study-session answer."""

    question_id: UUID
    correct: bool
    explanation: str | None
    updated_mastery: float
    mastery_version: int
    mastery_achieved: bool


# ============================================================================
# Test attempts
# ============================================================================


class ObjectiveBreakdown(BaseModel):
    """Per-objective result of a scored attempt."""

    objective_id: UUID
    correct: int
    total: int
    percentage: float
    weight: float


class TestScore(BaseModel):
    """Final result of a test attempt."""

    __test__ = False

    attempt_id: UUID
    score: float
    passed: bool
    passing_score: float
    correct_count: int
    incorrect_count: int
    skipped_count: int
    breakdown: list[ObjectiveBreakdown]
    force_submitted: bool = False
    completed_at: datetime


# ============================================================================
# Readiness
# ============================================================================


class ReadinessEstimate(BaseModel):
    """Predicted exam score with a confidence interval. Derived, never stored."""

    predicted_score: float = Field(..., ge=0.0, le=1.0)
    confidence_low: float = Field(..., ge=0.0, le=1.0)
    confidence_high: float = Field(..., ge=0.0, le=1.0)
    computed_at: datetime
    mastery_component: float
    test_trend: float
    tests_considered: int
    recommended_objective_ids: list[UUID]
