"""Test scorer service: grade an attempt's recorded answers against the content store."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from assessment_engine.learning_engine.contracts import ExamConfig
from assessment_engine.learning_engine.scoring.core import GradedItem, ScoreResult, score_attempt
from assessment_engine.learning_engine.scoring.grading import grade, parse_answer
from assessment_engine.models.session import TestAttempt
from assessment_engine.repositories import content

logger = logging.getLogger(__name__)


def grade_attempt(db: Session, attempt: TestAttempt) -> list[GradedItem]:
    """Grade every question of the attempt in its fixed order."""
    question_ids = [UUID(qid) for qid in attempt.question_ids]
    questions = content.get_questions(db, question_ids)
    answers = attempt.answers or {}

    items: list[GradedItem] = []
    for qid in question_ids:
        question = questions[qid]
        raw = answers.get(str(qid))
        # Blank answers count as skipped
        correct = grade(question.question_type, question.options, raw) if parse_answer(raw) else None
        items.append(GradedItem(question_id=qid, objective_id=question.objective_id, correct=correct))
    return items


def score_recorded_answers(db: Session, attempt: TestAttempt, exam: ExamConfig) -> tuple[ScoreResult, list[GradedItem]]:
    items = grade_attempt(db, attempt)
    result = score_attempt(exam, items)
    logger.debug(
        f"Scored attempt {attempt.id}: score={result.score:.4f} passed={result.passed} "
        f"correct={result.correct_count} skipped={result.skipped_count}"
    )
    return result, items
