"""
User/session store access: mastery, exposure, sessions, attempts and the answer log.
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from assessment_engine.core.errors import NotFoundError, translate_store_errors
from assessment_engine.models.learning_mastery import MasteryRecord, QuestionExposure
from assessment_engine.models.session import (
    AnswerEvent,
    AttemptState,
    SessionState,
    StudySession,
    TestAttempt,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Mastery
# ============================================================================


def get_mastery_record(
    db: Session,
    user_id: UUID,
    objective_id: UUID,
    refresh: bool = False,
) -> MasteryRecord | None:
    """
    Load a mastery record.

    With ``refresh`` the row is re-read from the store even if the session
    already holds the object, discarding any stale in-memory state.
    """
    query = select(MasteryRecord).where(
        and_(
            MasteryRecord.user_id == user_id,
            MasteryRecord.objective_id == objective_id,
        )
    )
    if refresh:
        query = query.execution_options(populate_existing=True)

    with translate_store_errors("get_mastery_record"):
        return db.execute(query).scalar_one_or_none()


def list_mastery_records(db: Session, user_id: UUID, objective_ids: list[UUID]) -> dict[UUID, MasteryRecord]:
    if not objective_ids:
        return {}
    with translate_store_errors("list_mastery_records"):
        rows = db.execute(
            select(MasteryRecord).where(
                and_(
                    MasteryRecord.user_id == user_id,
                    MasteryRecord.objective_id.in_(objective_ids),
                )
            )
        ).scalars().all()
    return {r.objective_id: r for r in rows}


# ============================================================================
# Exposure
# ============================================================================


def get_exposure(db: Session, user_id: UUID, question_id: UUID) -> QuestionExposure | None:
    with translate_store_errors("get_exposure"):
        return db.execute(
            select(QuestionExposure).where(
                and_(
                    QuestionExposure.user_id == user_id,
                    QuestionExposure.question_id == question_id,
                )
            )
        ).scalar_one_or_none()


def list_cooling_question_ids(db: Session, user_id: UUID, question_ids: list[UUID], now: datetime) -> set[UUID]:
    """Ids among ``question_ids`` whose cooldown has not elapsed at ``now``."""
    if not question_ids:
        return set()
    with translate_store_errors("list_cooling_question_ids"):
        rows = db.execute(
            select(QuestionExposure.question_id).where(
                and_(
                    QuestionExposure.user_id == user_id,
                    QuestionExposure.question_id.in_(question_ids),
                    QuestionExposure.next_eligible_at > now,
                )
            )
        ).scalars().all()
    return set(rows)


# ============================================================================
# Study sessions / test attempts
# ============================================================================


def get_study_session(db: Session, session_id: UUID) -> StudySession:
    with translate_store_errors("get_study_session"):
        session = db.get(StudySession, session_id)
    if session is None:
        raise NotFoundError(f"Study session {session_id} not found", {"session_id": str(session_id)})
    return session


def get_test_attempt(db: Session, attempt_id: UUID) -> TestAttempt:
    with translate_store_errors("get_test_attempt"):
        attempt = db.get(TestAttempt, attempt_id)
    if attempt is None:
        raise NotFoundError(f"Test attempt {attempt_id} not found", {"attempt_id": str(attempt_id)})
    return attempt


def list_expired_study_sessions(db: Session, now: datetime) -> list[StudySession]:
    """Non-terminal sessions whose deadline has passed."""
    with translate_store_errors("list_expired_study_sessions"):
        rows = db.execute(
            select(StudySession)
            .where(
                and_(
                    StudySession.state.in_([SessionState.CREATED, SessionState.ACTIVE, SessionState.PAUSED]),
                    StudySession.expires_at < now,
                )
            )
            .order_by(StudySession.expires_at)
        ).scalars().all()
    return list(rows)


def list_expired_test_attempts(db: Session, now: datetime) -> list[TestAttempt]:
    with translate_store_errors("list_expired_test_attempts"):
        rows = db.execute(
            select(TestAttempt)
            .where(
                and_(
                    TestAttempt.state == AttemptState.IN_PROGRESS,
                    TestAttempt.expires_at < now,
                )
            )
            .order_by(TestAttempt.expires_at)
        ).scalars().all()
    return list(rows)


def list_recent_test_scores(db: Session, user_id: UUID, exam_id: UUID, limit: int) -> list[float]:
    """Scores of the newest ``limit`` completed attempts, oldest first."""
    with translate_store_errors("list_recent_test_scores"):
        rows = db.execute(
            select(TestAttempt.score)
            .where(
                and_(
                    TestAttempt.user_id == user_id,
                    TestAttempt.exam_id == exam_id,
                    TestAttempt.state == AttemptState.COMPLETED,
                    TestAttempt.score.is_not(None),
                )
            )
            .order_by(TestAttempt.completed_at.desc())
            .limit(limit)
        ).scalars().all()
    return list(reversed(rows))


def list_completed_attempts(db: Session, exam_id: UUID) -> list[TestAttempt]:
    with translate_store_errors("list_completed_attempts"):
        rows = db.execute(
            select(TestAttempt)
            .where(
                and_(
                    TestAttempt.exam_id == exam_id,
                    TestAttempt.state == AttemptState.COMPLETED,
                )
            )
            .order_by(TestAttempt.completed_at)
        ).scalars().all()
    return list(rows)


# ============================================================================
# Answer log
# ============================================================================


def add_answer_event(db: Session, **fields) -> AnswerEvent:
    event = AnswerEvent(**fields)
    db.add(event)
    return event


def list_answer_events(
    db: Session,
    question_ids: list[UUID] | None = None,
    study_session_id: UUID | None = None,
    test_attempt_id: UUID | None = None,
) -> list[AnswerEvent]:
    query = select(AnswerEvent)
    if question_ids is not None:
        query = query.where(AnswerEvent.question_id.in_(question_ids))
    if study_session_id is not None:
        query = query.where(AnswerEvent.study_session_id == study_session_id)
    if test_attempt_id is not None:
        query = query.where(AnswerEvent.test_attempt_id == test_attempt_id)

    with translate_store_errors("list_answer_events"):
        rows = db.execute(query.order_by(AnswerEvent.answered_at)).scalars().all()
    return list(rows)
