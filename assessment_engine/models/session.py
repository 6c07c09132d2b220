"""Study session, test attempt and answer log models."""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    Uuid,
)

from assessment_engine.core.clock import utcnow
from assessment_engine.db.base import Base, UTCDateTime


def _values(enum_cls):
    return [member.value for member in enum_cls]


class StudyMode(str, PyEnum):
    """How a study session picks its objectives."""

    PRACTICE = "practice"
    REVIEW = "review"
    SPEED_DRILL = "speed_drill"
    WEAK_AREAS = "weak_areas"
    CUSTOM = "custom"


class SessionState(str, PyEnum):
    """Study session lifecycle state."""

    CREATED = "created"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class AttemptState(str, PyEnum):
    """Timed test attempt lifecycle state."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"
    INVALIDATED = "invalidated"


class StudySession(Base):
    """Untimed adaptive practice session."""

    __tablename__ = "study_sessions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    exam_id = Column(Uuid, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False)

    mode = Column(
        Enum(StudyMode, name="study_mode", native_enum=False, values_callable=_values),
        nullable=False,
        default=StudyMode.PRACTICE,
    )
    state = Column(
        Enum(SessionState, name="session_state", native_enum=False, values_callable=_values),
        nullable=False,
        default=SessionState.CREATED,
    )

    # Optional restriction to a subset of objectives (list of id strings)
    objective_ids = Column(JSON, nullable=True)
    target_difficulty = Column(SmallInteger, nullable=True)

    # Question ids as strings, in serve order
    served_question_ids = Column(JSON, nullable=False, default=list)
    pending_question_ids = Column(JSON, nullable=False, default=list)

    questions_answered = Column(Integer, nullable=False, default=0)
    correct_answers = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    max_streak = Column(Integer, nullable=False, default=0)

    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    expires_at = Column(UTCDateTime, nullable=False)
    last_activity_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)

    __table_args__ = (
        Index("ix_study_sessions_user_state", "user_id", "state"),
        Index("ix_study_sessions_expires_at", "expires_at"),
    )

    @property
    def is_terminal(self) -> bool:
        return self.state in (SessionState.COMPLETED, SessionState.ABANDONED)

    def __repr__(self) -> str:
        return f"<StudySession(id={self.id}, state={self.state})>"


class TestAttempt(Base):
    """Timed practice exam with a fixed, ordered question set."""

    __tablename__ = "test_attempts"
    # Not a pytest test class
    __test__ = False

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    exam_id = Column(Uuid, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False)

    question_ids = Column(JSON, nullable=False, default=list)
    # question id string -> raw answer
    answers = Column(JSON, nullable=False, default=dict)

    state = Column(
        Enum(AttemptState, name="attempt_state", native_enum=False, values_callable=_values),
        nullable=False,
        default=AttemptState.IN_PROGRESS,
    )

    started_at = Column(UTCDateTime, nullable=False, default=utcnow)
    expires_at = Column(UTCDateTime, nullable=False)
    completed_at = Column(UTCDateTime, nullable=True)

    # Result, set on completion
    passing_score = Column(Float, nullable=False, default=0.65)
    score = Column(Float, nullable=True)
    passed = Column(Boolean, nullable=True)
    correct_count = Column(Integer, nullable=True)
    incorrect_count = Column(Integer, nullable=True)
    skipped_count = Column(Integer, nullable=True)
    objective_breakdown = Column(JSON, nullable=True)
    force_submitted = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_test_attempts_user_exam_state", "user_id", "exam_id", "state"),
        Index("ix_test_attempts_expires_at", "expires_at"),
    )

    def __repr__(self) -> str:
        return f"<TestAttempt(id={self.id}, state={self.state})>"


class AnswerEvent(Base):
    """Append-only answer log across study sessions and test attempts."""

    __tablename__ = "answer_events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, nullable=False)
    question_id = Column(Uuid, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    objective_id = Column(Uuid, nullable=False)

    study_session_id = Column(Uuid, ForeignKey("study_sessions.id", ondelete="CASCADE"), nullable=True)
    test_attempt_id = Column(Uuid, ForeignKey("test_attempts.id", ondelete="CASCADE"), nullable=True)

    selected_answer = Column(JSON, nullable=True)
    is_correct = Column(Boolean, nullable=False)
    time_spent_seconds = Column(Integer, nullable=True)
    confidence_level = Column(SmallInteger, nullable=True)
    flagged = Column(Boolean, nullable=False, default=False)

    answered_at = Column(UTCDateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_answer_events_question_id", "question_id"),
        Index("ix_answer_events_user_answered", "user_id", "answered_at"),
    )
