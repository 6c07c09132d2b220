"""Eligibility filter service: exposure records and cooldown checks."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from assessment_engine.core.clock import ensure_utc
from assessment_engine.learning_engine.eligibility.core import (
    is_eligible_at,
    next_consecutive_correct,
    next_eligible_at,
)
from assessment_engine.models.learning_mastery import QuestionExposure
from assessment_engine.repositories import progress

logger = logging.getLogger(__name__)


def is_eligible(db: Session, user_id: UUID, question_id: UUID, now: datetime) -> bool:
    exposure = progress.get_exposure(db, user_id, question_id)
    return is_eligible_at(exposure.next_eligible_at if exposure else None, ensure_utc(now))


def ineligible_question_ids(db: Session, user_id: UUID, question_ids: list[UUID], now: datetime) -> set[UUID]:
    """Bulk variant of is_eligible: ids still cooling down at ``now``."""
    return progress.list_cooling_question_ids(db, user_id, question_ids, ensure_utc(now))


def record_exposure(
    db: Session,
    user_id: UUID,
    question_id: UUID,
    correct: bool,
    now: datetime,
) -> QuestionExposure:
    """
    Record that a user answered a question and schedule its next eligibility.

    This is the only write path for QuestionExposure. It is called from the
    answer-submission flow; serving a question alone never records an exposure.
    The caller commits.
    """
    now = ensure_utc(now)
    exposure = progress.get_exposure(db, user_id, question_id)

    if exposure is None:
        exposure = QuestionExposure(
            user_id=user_id,
            question_id=question_id,
            consecutive_correct=0,
            times_seen=0,
        )
        db.add(exposure)

    streak = next_consecutive_correct(exposure.consecutive_correct or 0, correct)
    exposure.consecutive_correct = streak
    exposure.times_seen = (exposure.times_seen or 0) + 1
    exposure.last_seen_at = now
    exposure.last_correct = correct
    exposure.next_eligible_at = next_eligible_at(streak, now)

    logger.debug(
        f"Exposure user={user_id} question={question_id} correct={correct} "
        f"streak={streak} next_eligible_at={exposure.next_eligible_at.isoformat()}"
    )
    return exposure
