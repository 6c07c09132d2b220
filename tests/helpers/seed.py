"""Test seed helpers for creating exams, objectives and questions."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from assessment_engine.models.content import Exam, Objective, Question, QuestionType
from assessment_engine.models.session import AttemptState, TestAttempt


@dataclass
class SeededExam:
    exam: Exam
    objectives: dict[str, Objective] = field(default_factory=dict)
    questions: dict[str, list[Question]] = field(default_factory=dict)

    def objective_id(self, code: str) -> uuid.UUID:
        return self.objectives[code].id

    def question_ids(self, code: str) -> list[uuid.UUID]:
        return [q.id for q in self.questions[code]]


def mc_options(correct: str = "a", ids: str = "abcd") -> list[dict[str, Any]]:
    """Multiple-choice options with a single correct id."""
    return [{"id": oid, "text": f"Option {oid.upper()}", "is_correct": oid == correct} for oid in ids]


def create_question(
    db: Session,
    exam: Exam,
    objective: Objective,
    difficulty: int = 3,
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE,
    options: list[dict[str, Any]] | None = None,
    is_active: bool = True,
    explanation: str | None = "Because option A.",
) -> Question:
    question = Question(
        id=uuid.uuid4(),
        exam_id=exam.id,
        objective_id=objective.id,
        question_type=question_type,
        difficulty=difficulty,
        stem="Which option is correct?",
        options=options if options is not None else mc_options(),
        explanation=explanation,
        is_active=is_active,
    )
    db.add(question)
    return question


def create_test_exam(
    db: Session,
    objectives: dict[str, tuple[float, list[int]]],
    passing_score: float = 0.65,
    question_count: int = 65,
    time_limit_minutes: int = 90,
    code: str | None = None,
) -> SeededExam:
    """
    Create an exam with deterministic content.

    Args:
        db: Database session
        objectives: code -> (weight, difficulties); one MC question (correct
            answer "a") is created per listed difficulty
        passing_score: Exam passing threshold
        question_count: Questions per test attempt
        time_limit_minutes: Test time limit
        code: Exam code (random if omitted)

    Returns:
        SeededExam with the committed exam, objectives and questions
    """
    exam = Exam(
        id=uuid.uuid4(),
        code=code or f"EXAM-{uuid.uuid4().hex[:8]}",
        name="Test Certification",
        passing_score=passing_score,
        question_count=question_count,
        time_limit_minutes=time_limit_minutes,
        is_active=True,
    )
    db.add(exam)
    db.flush()

    seeded = SeededExam(exam=exam)
    for obj_code, (weight, difficulties) in objectives.items():
        objective = Objective(id=uuid.uuid4(), exam_id=exam.id, code=obj_code, name=f"Objective {obj_code}", weight=weight)
        db.add(objective)
        db.flush()
        seeded.objectives[obj_code] = objective
        seeded.questions[obj_code] = [create_question(db, exam, objective, difficulty=d) for d in difficulties]

    db.commit()
    return seeded


def create_completed_attempt(
    db: Session,
    user_id: uuid.UUID,
    exam: Exam,
    score: float,
    completed_at: datetime,
    answers: dict[str, Any] | None = None,
    question_ids: list[uuid.UUID] | None = None,
) -> TestAttempt:
    """Insert an already scored attempt, bypassing the attempt service."""
    attempt = TestAttempt(
        id=uuid.uuid4(),
        user_id=user_id,
        exam_id=exam.id,
        question_ids=[str(q) for q in question_ids or []],
        answers=answers or {},
        state=AttemptState.COMPLETED,
        started_at=completed_at - timedelta(minutes=60),
        expires_at=completed_at + timedelta(minutes=30),
        completed_at=completed_at,
        passing_score=exam.passing_score,
        score=score,
        passed=score >= exam.passing_score,
        force_submitted=False,
    )
    db.add(attempt)
    db.commit()
    return attempt
