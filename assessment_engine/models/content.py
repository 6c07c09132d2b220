"""Content store models: exams, objectives and questions (read-only to the engine)."""

import uuid
from enum import Enum as PyEnum
from enum import IntEnum

from sqlalchemy import (
    JSON,
    Boolean,
    Enum,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from assessment_engine.core.clock import utcnow
from assessment_engine.db.base import Base, UTCDateTime


class QuestionType(str, PyEnum):
    """Supported question formats."""

    MULTIPLE_CHOICE = "multiple_choice"
    MULTI_SELECT = "multi_select"
    TRUE_FALSE = "true_false"
    DRAG_DROP = "drag_drop"
    HOTSPOT = "hotspot"


class DifficultyLevel(IntEnum):
    """Question difficulty, 1 (easiest) to 5 (hardest)."""

    VERY_EASY = 1
    EASY = 2
    MEDIUM = 3
    HARD = 4
    VERY_HARD = 5


class Exam(Base):
    """A certification exam blueprint."""

    __tablename__ = "exams"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(64), nullable=False, unique=True)
    name = Column(String(255), nullable=False)

    passing_score = Column(Float, nullable=False, default=0.65)
    question_count = Column(Integer, nullable=False, default=65)
    time_limit_minutes = Column(Integer, nullable=False, default=90)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    objectives = relationship(
        "Objective",
        back_populates="exam",
        order_by="Objective.code",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Exam(id={self.id}, code={self.code})>"


class Objective(Base):
    """A weighted exam domain."""

    __tablename__ = "objectives"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    exam_id = Column(Uuid, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False)
    code = Column(String(32), nullable=False)
    name = Column(String(255), nullable=False)

    # Share of the exam, (0, 1]; weights of one exam sum to 1
    weight = Column(Float, nullable=False, default=0.25)

    exam = relationship("Exam", back_populates="objectives")

    __table_args__ = (
        UniqueConstraint("exam_id", "code", name="uq_objective_exam_code"),
        Index("ix_objectives_exam_id", "exam_id"),
    )


class Question(Base):
    """A gradable question; options hold ``[{id, text, is_correct}]``."""

    __tablename__ = "questions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    exam_id = Column(Uuid, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False)
    objective_id = Column(Uuid, ForeignKey("objectives.id", ondelete="CASCADE"), nullable=False)

    question_type = Column(
        Enum(
            QuestionType,
            name="question_type",
            native_enum=False,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        default=QuestionType.MULTIPLE_CHOICE,
    )
    difficulty = Column(Integer, nullable=False, default=int(DifficultyLevel.MEDIUM))
    stem = Column(Text, nullable=False, default="")
    options = Column(JSON, nullable=False, default=list)
    explanation = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # Quality statistics (maintained by the offline question-quality job)
    total_attempts = Column(Integer, nullable=False, default=0)
    correct_attempts = Column(Integer, nullable=False, default=0)
    discrimination_index = Column(Float, nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    objective = relationship("Objective")

    __table_args__ = (
        Index("ix_questions_pool", "exam_id", "objective_id", "is_active", "difficulty"),
    )

    @property
    def difficulty_level(self) -> DifficultyLevel:
        return DifficultyLevel(self.difficulty)

    @property
    def correct_option_ids(self) -> list[str]:
        """Ids of correct options, in declared order."""
        return [str(option["id"]) for option in self.options or [] if option.get("is_correct")]

    def __repr__(self) -> str:
        return f"<Question(id={self.id}, type={self.question_type}, difficulty={self.difficulty})>"
