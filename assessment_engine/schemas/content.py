"""Pydantic schemas for exam definition documents."""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from assessment_engine.learning_engine.config import (
    DIFFICULTY_MAX,
    DIFFICULTY_MIN,
    EXAM_DEFAULT_PASSING_SCORE,
    EXAM_DEFAULT_QUESTION_COUNT,
    EXAM_DEFAULT_TIME_LIMIT_MINUTES,
    OBJECTIVE_WEIGHT_TOLERANCE,
)
from assessment_engine.models.content import QuestionType


class OptionDefinition(BaseModel):
    """One answer option."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, max_length=64)
    text: str = ""
    is_correct: bool = Field(default=False, validation_alias=AliasChoices("is_correct", "isCorrect"))


class QuestionDefinition(BaseModel):
    """A question inside an objective."""

    model_config = ConfigDict(populate_by_name=True)

    question_type: QuestionType = Field(
        default=QuestionType.MULTIPLE_CHOICE,
        validation_alias=AliasChoices("question_type", "type"),
    )
    difficulty: int = Field(default=3, ge=DIFFICULTY_MIN.value, le=DIFFICULTY_MAX.value)
    stem: str = Field(default="", validation_alias=AliasChoices("stem", "text"))
    options: list[OptionDefinition] = Field(..., min_length=1)
    explanation: str | None = None
    is_active: bool = True

    @model_validator(mode="after")
    def validate_options(self) -> "QuestionDefinition":
        ids = [o.id for o in self.options]
        if len(set(ids)) != len(ids):
            raise ValueError("option ids must be unique within a question")
        correct = [o for o in self.options if o.is_correct]
        if not correct:
            raise ValueError("question must have at least one correct option")
        if self.question_type == QuestionType.TRUE_FALSE and len(correct) != 1:
            raise ValueError("true_false question must have exactly one correct option")
        return self


class ObjectiveDefinition(BaseModel):
    """A weighted objective and its questions."""

    code: str = Field(..., min_length=1, max_length=32)
    name: str = Field(..., min_length=1, max_length=255)
    weight: float = Field(..., gt=0.0, le=1.0)
    questions: list[QuestionDefinition] = Field(default_factory=list)


class ExamDefinition(BaseModel):
    """A complete exam document."""

    code: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    passing_score: float = Field(default=EXAM_DEFAULT_PASSING_SCORE.value, ge=0.0, le=1.0)
    question_count: int = Field(default=EXAM_DEFAULT_QUESTION_COUNT.value, ge=1)
    time_limit_minutes: int = Field(default=EXAM_DEFAULT_TIME_LIMIT_MINUTES.value, ge=1)
    objectives: list[ObjectiveDefinition] = Field(..., min_length=1)

    @field_validator("objectives")
    @classmethod
    def validate_objectives(cls, v: list[ObjectiveDefinition]) -> list[ObjectiveDefinition]:
        codes = [o.code for o in v]
        if len(set(codes)) != len(codes):
            raise ValueError("objective codes must be unique")
        total = sum(o.weight for o in v)
        if abs(total - 1.0) > OBJECTIVE_WEIGHT_TOLERANCE.value:
            raise ValueError(f"objective weights must sum to 1.0, got {total:.6f}")
        return v
