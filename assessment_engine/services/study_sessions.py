"""
Study session service: untimed adaptive practice.

Sessions expire lazily: every operation checks the server-side deadline
first and abandons an expired session before doing anything else.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from assessment_engine.core.clock import ensure_utc
from assessment_engine.core.config import settings
from assessment_engine.core.errors import TimeExpiredError, ValidationError, validation_error_from_pydantic
from assessment_engine.db.session import unit_of_work
from assessment_engine.learning_engine.contracts import AnswerResult, SessionConfig
from assessment_engine.learning_engine.eligibility.service import record_exposure
from assessment_engine.learning_engine.mastery.service import is_mastery_achieved, update_mastery
from assessment_engine.learning_engine.scoring.grading import grade
from assessment_engine.learning_engine.selection.core import create_seeded_rng
from assessment_engine.learning_engine.selection.service import select_questions
from assessment_engine.models.session import SessionState, StudyMode, StudySession
from assessment_engine.repositories import content, progress
from assessment_engine.services.lifecycle import is_expired, transition_session

logger = logging.getLogger(__name__)


def _parse_config(config: SessionConfig | dict[str, Any] | None) -> SessionConfig:
    if config is None:
        return SessionConfig()
    if isinstance(config, SessionConfig):
        return config
    try:
        return SessionConfig.model_validate(config)
    except PydanticValidationError as exc:
        raise validation_error_from_pydantic(exc, "Invalid session configuration") from exc


def start_session(
    db: Session,
    user_id: UUID,
    exam_id: UUID,
    config: SessionConfig | dict[str, Any] | None,
    now: datetime,
    ttl_minutes: int | None = None,
) -> StudySession:
    """
    Create a study session in the ``created`` state.

    Raises:
        ValidationError: Bad config, or objective_ids outside the exam
        NotFoundError: Unknown exam
    """
    now = ensure_utc(now)
    cfg = _parse_config(config)

    with unit_of_work(db):
        exam = content.load_exam_config(db, exam_id)
        exam_objectives = {o.objective_id for o in exam.objectives}

        if cfg.objective_ids is not None:
            unknown = [str(oid) for oid in cfg.objective_ids if oid not in exam_objectives]
            if unknown:
                raise ValidationError("Objectives do not belong to this exam", {"objective_ids": unknown})

        session = StudySession(
            user_id=user_id,
            exam_id=exam_id,
            mode=cfg.mode,
            state=SessionState.CREATED,
            objective_ids=[str(oid) for oid in cfg.objective_ids] if cfg.objective_ids else None,
            target_difficulty=cfg.target_difficulty,
            served_question_ids=[],
            pending_question_ids=[],
            questions_answered=0,
            correct_answers=0,
            current_streak=0,
            max_streak=0,
            created_at=now,
            expires_at=now + timedelta(minutes=ttl_minutes or settings.STUDY_SESSION_TTL_MINUTES),
        )
        db.add(session)

    logger.info(f"Study session {session.id} created user={user_id} exam={exam_id} mode={cfg.mode.value}")
    return session


def expire_session(db: Session, session: StudySession, now: datetime) -> StudySession:
    """Abandon a non-terminal session whose deadline has passed. Commits."""
    now = ensure_utc(now)
    if session.is_terminal or not is_expired(session, now):
        return session

    transition_session(session, SessionState.ABANDONED)
    session.completed_at = now
    db.commit()

    logger.info(f"Study session {session.id} expired and abandoned")
    return session


def _load_live_session(db: Session, session_id: UUID, now: datetime) -> StudySession:
    session = progress.get_study_session(db, session_id)
    if not session.is_terminal and is_expired(session, now):
        expire_session(db, session, now)
        raise TimeExpiredError(
            f"Study session {session_id} expired",
            {"session_id": str(session_id), "expires_at": session.expires_at.isoformat()},
        )
    return session


def _validate_count(count: Any) -> int:
    if isinstance(count, bool) or not isinstance(count, int):
        raise ValidationError("count must be an integer", {"count": repr(count)})
    if count < 1 or count > settings.MAX_BATCH_SIZE:
        raise ValidationError(
            f"count must be between 1 and {settings.MAX_BATCH_SIZE}",
            {"count": count, "max": settings.MAX_BATCH_SIZE},
        )
    return count


def next_batch(
    db: Session,
    session_id: UUID,
    count: int,
    now: datetime,
    rng: random.Random | None = None,
) -> list[UUID]:
    """
    Serve the next batch of question ids for a study session.

    The first batch moves a ``created`` session to ``active``. Questions
    already served and not yet answered are never served again.

    Raises:
        ValidationError: Bad count, or the session is paused or terminal
        TimeExpiredError: The session expired (it is abandoned)
        InsufficientQuestionPoolError: Not enough eligible questions
    """
    count = _validate_count(count)
    now = ensure_utc(now)

    with unit_of_work(db):
        session = _load_live_session(db, session_id, now)
        state = SessionState(session.state)
        if state not in (SessionState.CREATED, SessionState.ACTIVE):
            raise ValidationError(
                f"Cannot serve questions to a {state.value} session",
                {"session_id": str(session_id), "state": state.value},
            )

        exam = content.load_exam_config(db, session.exam_id)
        served = list(session.served_question_ids or [])
        pending = list(session.pending_question_ids or [])

        rng = rng or create_seeded_rng(f"{session.id}:{len(served)}")
        batch = select_questions(
            db,
            session.user_id,
            exam,
            count,
            now,
            rng,
            objective_ids=[UUID(oid) for oid in session.objective_ids] if session.objective_ids else None,
            target_override=session.target_difficulty,
            exclude={UUID(qid) for qid in pending},
            weak_areas_only=session.mode == StudyMode.WEAK_AREAS,
        )

        if state == SessionState.CREATED:
            transition_session(session, SessionState.ACTIVE)
        session.served_question_ids = served + [str(qid) for qid in batch]
        session.pending_question_ids = pending + [str(qid) for qid in batch]
        session.last_activity_at = now

    logger.info(f"Study session {session_id} served {len(batch)} questions")
    return batch


def submit_answer(
    db: Session,
    session_id: UUID,
    question_id: UUID,
    answer: Any,
    now: datetime,
    time_spent_seconds: int | None = None,
    confidence_level: int | None = None,
    flagged: bool = False,
) -> AnswerResult:
    """
    Grade an answer to a served question and update mastery and exposure.

    Mastery, exposure, the answer log and the session counters are written in
    one unit of work.

    Raises:
        ValidationError: Question not pending in this session, malformed
            answer, or the session is not active
        TimeExpiredError: The session expired (it is abandoned)
        ConcurrencyConflict: Mastery write kept conflicting
    """
    now = ensure_utc(now)
    if confidence_level is not None and not 1 <= confidence_level <= 5:
        raise ValidationError("confidence_level must be between 1 and 5", {"confidence_level": confidence_level})
    if time_spent_seconds is not None and time_spent_seconds < 0:
        raise ValidationError("time_spent_seconds must be non-negative", {"time_spent_seconds": time_spent_seconds})

    with unit_of_work(db):
        session = _load_live_session(db, session_id, now)
        state = SessionState(session.state)
        if state != SessionState.ACTIVE:
            raise ValidationError(
                f"Cannot answer in a {state.value} session",
                {"session_id": str(session_id), "state": state.value},
            )

        pending = list(session.pending_question_ids or [])
        if str(question_id) not in pending:
            raise ValidationError(
                "Question is not awaiting an answer in this session",
                {"session_id": str(session_id), "question_id": str(question_id)},
            )

        question = content.get_question(db, question_id)
        correct = grade(question.question_type, question.options, answer)

        record = update_mastery(db, session.user_id, question.objective_id, correct, now)
        record_exposure(db, session.user_id, question_id, correct, now)
        progress.add_answer_event(
            db,
            user_id=session.user_id,
            question_id=question_id,
            objective_id=question.objective_id,
            study_session_id=session.id,
            selected_answer=answer,
            is_correct=correct,
            time_spent_seconds=time_spent_seconds,
            confidence_level=confidence_level,
            flagged=flagged,
            answered_at=now,
        )

        pending.remove(str(question_id))
        session.pending_question_ids = pending
        session.questions_answered += 1
        if correct:
            session.correct_answers += 1
            session.current_streak += 1
            session.max_streak = max(session.max_streak, session.current_streak)
        else:
            session.current_streak = 0
        session.last_activity_at = now

        result = AnswerResult(
            question_id=question_id,
            correct=correct,
            explanation=question.explanation,
            updated_mastery=record.level,
            mastery_version=record.version,
            mastery_achieved=is_mastery_achieved(record),
        )

    logger.info(
        f"Answer recorded session={session_id} question={question_id} correct={correct} "
        f"mastery={result.updated_mastery:.4f}"
    )
    return result


def _change_state(db: Session, session_id: UUID, target: SessionState, now: datetime) -> StudySession:
    now = ensure_utc(now)
    with unit_of_work(db):
        session = _load_live_session(db, session_id, now)
        transition_session(session, target)
        session.last_activity_at = now
        if target in (SessionState.COMPLETED, SessionState.ABANDONED):
            session.completed_at = now

    logger.info(f"Study session {session_id} -> {target.value}")
    return session


def pause_session(db: Session, session_id: UUID, now: datetime) -> StudySession:
    return _change_state(db, session_id, SessionState.PAUSED, now)


def resume_session(db: Session, session_id: UUID, now: datetime) -> StudySession:
    return _change_state(db, session_id, SessionState.ACTIVE, now)


def complete_session(db: Session, session_id: UUID, now: datetime) -> StudySession:
    return _change_state(db, session_id, SessionState.COMPLETED, now)


def abandon_session(db: Session, session_id: UUID, now: datetime) -> StudySession:
    """Abandon a session; an already expired one is abandoned without raising."""
    now = ensure_utc(now)
    session = progress.get_study_session(db, session_id)
    if not session.is_terminal and is_expired(session, now):
        return expire_session(db, session, now)
    return _change_state(db, session_id, SessionState.ABANDONED, now)
