"""Database models."""

from assessment_engine.models.content import DifficultyLevel, Exam, Objective, Question, QuestionType
from assessment_engine.models.learning_mastery import MasteryRecord, QuestionExposure
from assessment_engine.models.session import (
    AnswerEvent,
    AttemptState,
    SessionState,
    StudyMode,
    StudySession,
    TestAttempt,
)

__all__ = [
    "Exam",
    "Objective",
    "Question",
    "QuestionType",
    "DifficultyLevel",
    "MasteryRecord",
    "QuestionExposure",
    "StudySession",
    "StudyMode",
    "SessionState",
    "TestAttempt",
    "AttemptState",
    "AnswerEvent",
]
