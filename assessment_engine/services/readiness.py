"""Readiness service."""

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from assessment_engine.learning_engine.contracts import ReadinessEstimate
from assessment_engine.learning_engine.readiness.core import ReadinessParams
from assessment_engine.learning_engine.readiness.service import predict


def get_readiness(
    db: Session,
    user_id: UUID,
    exam_id: UUID,
    now: datetime,
    params: ReadinessParams | None = None,
) -> ReadinessEstimate:
    """
    Predict how ready a user is for an exam.

    Derived on every call and never stored. Raises NotFoundError for an
    unknown exam and ValidationError for an invalid exam configuration.
    """
    return predict(db, user_id, exam_id, now, params=params)
