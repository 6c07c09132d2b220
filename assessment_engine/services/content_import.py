"""Import exam definitions (objectives and questions) into the content store."""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session

from assessment_engine.core.errors import ValidationError, validation_error_from_pydantic
from assessment_engine.db.session import unit_of_work
from assessment_engine.models.content import Exam, Objective, Question
from assessment_engine.schemas.content import ExamDefinition

logger = logging.getLogger(__name__)


def parse_exam_definition(payload: dict[str, Any] | ExamDefinition) -> ExamDefinition:
    if isinstance(payload, ExamDefinition):
        return payload
    try:
        return ExamDefinition.model_validate(payload)
    except PydanticValidationError as exc:
        raise validation_error_from_pydantic(exc, "Invalid exam definition") from exc


def load_exam_definition(db: Session, payload: dict[str, Any] | ExamDefinition) -> Exam:
    """
    Create an exam with its objectives and questions.

    Args:
        db: Database session
        payload: Exam document (see ExamDefinition)

    Returns:
        The created exam (committed)

    Raises:
        ValidationError: Invalid document or duplicate exam code
    """
    definition = parse_exam_definition(payload)

    with unit_of_work(db):
        existing = db.execute(select(Exam.id).where(Exam.code == definition.code)).scalar_one_or_none()
        if existing is not None:
            raise ValidationError(f"Exam {definition.code} already exists", {"exam_id": str(existing)})

        exam = Exam(
            code=definition.code,
            name=definition.name,
            passing_score=definition.passing_score,
            question_count=definition.question_count,
            time_limit_minutes=definition.time_limit_minutes,
            is_active=True,
        )
        db.add(exam)
        db.flush()

        question_total = 0
        for objective_def in definition.objectives:
            objective = Objective(
                exam_id=exam.id,
                code=objective_def.code,
                name=objective_def.name,
                weight=objective_def.weight,
            )
            db.add(objective)
            db.flush()

            for question_def in objective_def.questions:
                db.add(
                    Question(
                        exam_id=exam.id,
                        objective_id=objective.id,
                        question_type=question_def.question_type,
                        difficulty=question_def.difficulty,
                        stem=question_def.stem,
                        options=[o.model_dump() for o in question_def.options],
                        explanation=question_def.explanation,
                        is_active=question_def.is_active,
                    )
                )
                question_total += 1

    logger.info(
        f"Imported exam {exam.code} ({exam.id}): {len(definition.objectives)} objectives, {question_total} questions"
    )
    return exam


def load_exam_file(db: Session, path: str | Path) -> Exam:
    """Import an exam from a JSON file."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"{path} is not valid JSON", {"line": exc.lineno, "column": exc.colno}) from exc
    return load_exam_definition(db, payload)
