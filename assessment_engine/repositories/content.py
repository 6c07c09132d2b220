"""
Content store reads.

The engine never writes exams, objectives or questions on its request path;
these queries are the only way it sees content.
"""

import logging
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from assessment_engine.core.errors import (
    NotFoundError,
    ValidationError,
    translate_store_errors,
    validation_error_from_pydantic,
)
from assessment_engine.learning_engine.contracts import DifficultyBand, ExamConfig, ObjectiveWeight
from assessment_engine.models.content import Exam, Objective, Question

logger = logging.getLogger(__name__)


def get_exam(db: Session, exam_id: UUID) -> Exam:
    with translate_store_errors("get_exam"):
        exam = db.get(Exam, exam_id)
    if exam is None:
        raise NotFoundError(f"Exam {exam_id} not found", {"exam_id": str(exam_id)})
    return exam


def get_objective_weights(db: Session, exam_id: UUID) -> list[ObjectiveWeight]:
    """Objective weights of an exam, ordered by objective code."""
    with translate_store_errors("get_objective_weights"):
        rows = db.execute(
            select(Objective.id, Objective.weight)
            .where(Objective.exam_id == exam_id)
            .order_by(Objective.code)
        ).all()

    try:
        return [ObjectiveWeight(objective_id=row.id, weight=row.weight) for row in rows]
    except PydanticValidationError as exc:
        raise validation_error_from_pydantic(exc, f"Exam {exam_id} has invalid objective weights") from exc


def load_exam_config(db: Session, exam_id: UUID) -> ExamConfig:
    """
    Load and validate an exam blueprint.

    Weight-sum validation happens here, once per load, rather than on every
    scoring or selection call.

    Raises:
        NotFoundError: Unknown exam
        ValidationError: Weights missing, out of range or not summing to 1
    """
    exam = get_exam(db, exam_id)
    weights = get_objective_weights(db, exam_id)

    try:
        return ExamConfig(
            exam_id=exam.id,
            passing_score=exam.passing_score,
            question_count=exam.question_count,
            time_limit_minutes=exam.time_limit_minutes,
            objectives=tuple(weights),
        )
    except PydanticValidationError as exc:
        raise validation_error_from_pydantic(exc, f"Exam {exam_id} configuration is invalid") from exc


def get_eligible_question_pool(
    db: Session,
    exam_id: UUID,
    objective_id: UUID,
    band: DifficultyBand,
) -> list[UUID]:
    """
    Active question ids of an objective within a difficulty band.

    Per-user eligibility (cooldowns) is applied by the eligibility filter,
    not here. Ordered by id for determinism under a seeded RNG.
    """
    with translate_store_errors("get_eligible_question_pool"):
        rows = db.execute(
            select(Question.id)
            .where(
                and_(
                    Question.exam_id == exam_id,
                    Question.objective_id == objective_id,
                    Question.is_active == True,  # noqa: E712
                    Question.difficulty >= band.low,
                    Question.difficulty <= band.high,
                )
            )
            .order_by(Question.id)
        ).scalars().all()
    return list(rows)


def get_active_questions_by_objective(db: Session, exam_id: UUID) -> dict[UUID, list[UUID]]:
    """All active question ids of an exam grouped by objective."""
    with translate_store_errors("get_active_questions_by_objective"):
        rows = db.execute(
            select(Question.id, Question.objective_id)
            .where(
                and_(
                    Question.exam_id == exam_id,
                    Question.is_active == True,  # noqa: E712
                )
            )
            .order_by(Question.id)
        ).all()

    grouped: dict[UUID, list[UUID]] = {}
    for row in rows:
        grouped.setdefault(row.objective_id, []).append(row.id)
    return grouped


def get_question(db: Session, question_id: UUID) -> Question:
    with translate_store_errors("get_question"):
        question = db.get(Question, question_id)
    if question is None:
        raise NotFoundError(f"Question {question_id} not found", {"question_id": str(question_id)})
    return question


def get_questions(db: Session, question_ids: list[UUID]) -> dict[UUID, Question]:
    """Fetch questions by id. Missing ids raise ValidationError."""
    if not question_ids:
        return {}
    with translate_store_errors("get_questions"):
        rows = db.execute(select(Question).where(Question.id.in_(question_ids))).scalars().all()

    by_id = {q.id: q for q in rows}
    missing = [str(qid) for qid in question_ids if qid not in by_id]
    if missing:
        raise ValidationError("Questions missing from content store", {"question_ids": missing})
    return by_id


def list_exam_question_ids(db: Session, exam_id: UUID) -> list[UUID]:
    """Every question id of an exam, active or not."""
    with translate_store_errors("list_exam_question_ids"):
        rows = db.execute(select(Question.id).where(Question.exam_id == exam_id).order_by(Question.id)).scalars().all()
    return list(rows)
