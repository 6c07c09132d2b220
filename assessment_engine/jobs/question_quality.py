"""Recompute per-question quality statistics for an exam.

Attempt counts come from the answer log (study and test answers). The
discrimination index uses completed test attempts only, correlating each
question's correctness with the attempt's overall score; skipped questions
count as incorrect, as they do in scoring.
"""

import logging
from collections import defaultdict
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from assessment_engine.db.session import unit_of_work
from assessment_engine.learning_engine.quality.discrimination import discrimination_index
from assessment_engine.learning_engine.scoring.grading import grade
from assessment_engine.repositories import content, progress

logger = logging.getLogger(__name__)


def recompute_question_quality(db: Session, exam_id: UUID) -> dict[str, Any]:
    """
    Refresh total_attempts, correct_attempts and discrimination_index.

    Returns:
        Summary with the number of questions updated and how many have a
        defined discrimination index
    """
    content.get_exam(db, exam_id)
    question_ids = content.list_exam_question_ids(db, exam_id)

    with unit_of_work(db):
        questions = content.get_questions(db, question_ids)

        totals: dict[UUID, int] = defaultdict(int)
        corrects: dict[UUID, int] = defaultdict(int)
        for event in progress.list_answer_events(db, question_ids=question_ids):
            totals[event.question_id] += 1
            if event.is_correct:
                corrects[event.question_id] += 1

        item_correct: dict[UUID, list[bool]] = defaultdict(list)
        item_scores: dict[UUID, list[float]] = defaultdict(list)
        for attempt in progress.list_completed_attempts(db, exam_id):
            answers = attempt.answers or {}
            for raw_id in attempt.question_ids:
                qid = UUID(raw_id)
                question = questions.get(qid)
                if question is None:
                    continue
                raw = answers.get(raw_id)
                correct = raw is not None and grade(question.question_type, question.options, raw)
                item_correct[qid].append(correct)
                item_scores[qid].append(attempt.score)

        defined = 0
        for qid, question in questions.items():
            question.total_attempts = totals[qid]
            question.correct_attempts = corrects[qid]
            question.discrimination_index = discrimination_index(item_correct[qid], item_scores[qid])
            if question.discrimination_index is not None:
                defined += 1

    summary = {"exam_id": str(exam_id), "questions_updated": len(questions), "discrimination_defined": defined}
    logger.info(f"Question quality recomputed: {summary}")
    return summary
