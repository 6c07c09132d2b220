"""Mastery tracker service: read-modify-write of mastery records."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from assessment_engine.core.clock import ensure_utc
from assessment_engine.core.errors import ConcurrencyConflict, translate_store_errors
from assessment_engine.learning_engine.config import (
    MASTERY_MAX_RETRIES,
    SELECTION_DEFAULT_TARGET_DIFFICULTY,
)
from assessment_engine.learning_engine.mastery.core import MasteryState, apply_answer, is_achieved
from assessment_engine.learning_engine.mastery.core import rolling_accuracy as _rolling_accuracy
from assessment_engine.models.learning_mastery import MasteryRecord
from assessment_engine.repositories import progress

logger = logging.getLogger(__name__)


def get_mastery(db: Session, user_id: UUID, objective_id: UUID) -> MasteryRecord | None:
    return progress.get_mastery_record(db, user_id, objective_id)


def get_mastery_levels(db: Session, user_id: UUID, objective_ids: list[UUID]) -> dict[UUID, float]:
    """Mastery level per objective; objectives never answered are 0.0."""
    records = progress.list_mastery_records(db, user_id, objective_ids)
    return {oid: (records[oid].level if oid in records else 0.0) for oid in objective_ids}


def is_mastery_achieved(record: MasteryRecord | None) -> bool:
    if record is None:
        return False
    return is_achieved(record.level, list(record.recent_results or []))


def rolling_accuracy(record: MasteryRecord | None, window: int) -> float | None:
    if record is None:
        return None
    return _rolling_accuracy(list(record.recent_results or []), window)


def _state_of(record: MasteryRecord) -> MasteryState:
    return MasteryState(
        level=record.level,
        questions_answered=record.questions_answered,
        correct_streak=record.correct_streak,
        recent_results=list(record.recent_results or []),
        last_answered_at=record.last_answered_at,
    )


def _apply_and_flush(
    db: Session,
    record: MasteryRecord | None,
    user_id: UUID,
    objective_id: UUID,
    correct: bool,
    now: datetime,
) -> MasteryRecord:
    """Apply one answer inside a SAVEPOINT so a lost race rolls back cleanly."""
    with db.begin_nested():
        if record is None:
            record = MasteryRecord(
                user_id=user_id,
                objective_id=objective_id,
                level=0.0,
                questions_answered=0,
                correct_streak=0,
                recent_results=[],
                target_difficulty=SELECTION_DEFAULT_TARGET_DIFFICULTY.value,
            )
            db.add(record)

        new_state, metadata = apply_answer(_state_of(record), correct, now)

        record.level = new_state.level
        record.questions_answered = new_state.questions_answered
        record.correct_streak = new_state.correct_streak
        # Reassign so the JSON column is marked dirty
        record.recent_results = new_state.recent_results
        record.last_answered_at = new_state.last_answered_at

        db.flush()

    logger.debug(
        f"Mastery update user={user_id} objective={objective_id} correct={correct} "
        f"{metadata['level_prior']:.4f}->{metadata['level_posterior']:.4f} rate={metadata['learning_rate']:.4f}"
    )
    return record


def update_mastery(
    db: Session,
    user_id: UUID,
    objective_id: UUID,
    correct: bool,
    now: datetime,
    expected_version: int | None = None,
) -> MasteryRecord:
    """
    Record one answer against a user's objective mastery.

    The record is created lazily on the first answer. Writes are
    compare-and-set on ``version``: a stale in-memory copy or a concurrent
    first insert is retried with a fresh read up to MASTERY_MAX_RETRIES times.
    The caller owns the surrounding transaction and commits it.

    Args:
        db: Database session
        user_id: User ID
        objective_id: Objective ID
        correct: Whether the answer was correct
        now: Answer time
        expected_version: Version the caller read; 0 means "no record yet".
            A mismatch raises ConcurrencyConflict without retrying.

    Returns:
        The updated record (flushed, not committed)

    Raises:
        ConcurrencyConflict: Version mismatch, or retries exhausted
    """
    now = ensure_utc(now)
    max_retries = MASTERY_MAX_RETRIES.value
    last_error: Exception | None = None

    for attempt in range(max_retries + 1):
        record = progress.get_mastery_record(
            db,
            user_id,
            objective_id,
            refresh=attempt > 0 or expected_version is not None,
        )

        if expected_version is not None:
            stored_version = record.version if record is not None else 0
            if stored_version != expected_version:
                logger.warning(
                    f"Mastery version mismatch user={user_id} objective={objective_id} "
                    f"expected={expected_version} stored={stored_version}"
                )
                raise ConcurrencyConflict(
                    "Mastery record was modified concurrently",
                    {
                        "objective_id": str(objective_id),
                        "expected_version": expected_version,
                        "stored_version": stored_version,
                    },
                )

        try:
            with translate_store_errors("update_mastery"):
                return _apply_and_flush(db, record, user_id, objective_id, correct, now)
        except (StaleDataError, IntegrityError) as exc:
            last_error = exc
            logger.warning(
                f"Mastery write conflict user={user_id} objective={objective_id} "
                f"attempt={attempt + 1}/{max_retries + 1}: {type(exc).__name__}"
            )

    raise ConcurrencyConflict(
        "Mastery update kept conflicting with concurrent writers",
        {"objective_id": str(objective_id), "attempts": max_retries + 1},
    ) from last_error
