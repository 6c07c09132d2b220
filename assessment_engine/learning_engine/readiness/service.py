"""Readiness predictor service."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from assessment_engine.core.clock import ensure_utc
from assessment_engine.core.config import settings
from assessment_engine.learning_engine.contracts import ReadinessEstimate
from assessment_engine.learning_engine.mastery.service import get_mastery_levels
from assessment_engine.learning_engine.readiness.core import ReadinessParams, predict_readiness
from assessment_engine.repositories import content, progress

logger = logging.getLogger(__name__)


def predict(
    db: Session,
    user_id: UUID,
    exam_id: UUID,
    now: datetime,
    params: ReadinessParams | None = None,
    history_size: int | None = None,
) -> ReadinessEstimate:
    """Read mastery and recent test scores, then predict readiness. Read-only."""
    exam = content.load_exam_config(db, exam_id)
    weights = list(exam.objectives)

    levels = get_mastery_levels(db, user_id, [w.objective_id for w in weights])
    scores = progress.list_recent_test_scores(
        db,
        user_id,
        exam_id,
        limit=history_size or settings.READINESS_HISTORY_SIZE,
    )

    estimate = predict_readiness(weights, levels, scores, ensure_utc(now), params)
    logger.info(
        f"Readiness user={user_id} exam={exam_id} predicted={estimate.predicted_score:.4f} "
        f"ci=[{estimate.confidence_low:.4f}, {estimate.confidence_high:.4f}] tests={estimate.tests_considered}"
    )
    return estimate
