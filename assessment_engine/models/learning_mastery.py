"""Per-user progress models owned by the mastery tracker and eligibility filter."""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    Uuid,
)

from assessment_engine.core.clock import utcnow
from assessment_engine.db.base import Base, UTCDateTime


class MasteryRecord(Base):
    """Per-user, per-objective mastery estimate."""

    __tablename__ = "mastery_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    objective_id = Column(Uuid, ForeignKey("objectives.id", ondelete="CASCADE"), nullable=False)

    # Mastery level (0..1)
    level = Column(Float, nullable=False, default=0.0)
    questions_answered = Column(Integer, nullable=False, default=0)
    correct_streak = Column(Integer, nullable=False, default=0)

    # Last 10 correctness bits, oldest first
    recent_results = Column(JSON, nullable=False, default=list)
    target_difficulty = Column(Integer, nullable=False, default=3)

    last_answered_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Optimistic concurrency token, bumped by the ORM on every UPDATE
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        UniqueConstraint("user_id", "objective_id", name="uq_mastery_user_objective"),
        Index("ix_mastery_records_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<MasteryRecord(user={self.user_id}, objective={self.objective_id}, level={self.level})>"


class QuestionExposure(Base):
    """Per-user, per-question spaced-repetition state."""

    __tablename__ = "question_exposures"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    question_id = Column(Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)

    last_seen_at = Column(UTCDateTime, nullable=False)
    last_correct = Column(Boolean, nullable=False)
    consecutive_correct = Column(Integer, nullable=False, default=0)
    times_seen = Column(Integer, nullable=False, default=0)
    next_eligible_at = Column(UTCDateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "question_id", name="uq_exposure_user_question"),
        Index("ix_question_exposures_user_next", "user_id", "next_eligible_at"),
    )
