"""Tests for item discrimination and the question quality job."""

import math
import uuid

import pytest

from assessment_engine.core.errors import NotFoundError
from assessment_engine.jobs.question_quality import recompute_question_quality
from assessment_engine.learning_engine.quality.discrimination import discrimination_index
from assessment_engine.repositories import content, progress
from tests.helpers.seed import create_completed_attempt, create_test_exam


class TestDiscriminationIndex:
    """Test the point-biserial correlation."""

    def test_strong_items_discriminate_positively(self):
        r = discrimination_index([True, True, False, False], [0.9, 0.8, 0.3, 0.2])
        # population sd of the totals is sqrt(0.0925)
        assert r == pytest.approx((0.85 - 0.25) / math.sqrt(0.0925) * 0.5)

    def test_inverted_item_is_negative(self):
        r = discrimination_index([False, False, True, True], [0.9, 0.8, 0.3, 0.2])
        assert r < 0

    def test_result_is_bounded(self):
        r = discrimination_index([True, False, True, False, True], [0.9, 0.1, 0.7, 0.4, 0.6])
        assert -1.0 <= r <= 1.0

    @pytest.mark.parametrize(
        "item_correct,scores",
        [
            ([], []),
            ([True], [0.8]),
            ([True, True, True], [0.2, 0.5, 0.9]),
            ([False, False], [0.2, 0.9]),
            ([True, False], [0.5, 0.5]),
        ],
    )
    def test_undefined_cases(self, item_correct, scores):
        assert discrimination_index(item_correct, scores) is None

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            discrimination_index([True, False], [0.5])


class TestQuestionQualityJob:
    """Test recomputation against stored attempts and answers."""

    def test_recompute(self, db, now):
        seeded = create_test_exam(db, {"O1": (1.0, [3, 3, 3])})
        q1, q2, q3 = seeded.question_ids("O1")
        oid = seeded.objective_id("O1")
        all_ids = [q1, q2, q3]

        create_completed_attempt(db, uuid.uuid4(), seeded.exam, 0.9, now, {str(q1): "a", str(q2): "a"}, all_ids)
        create_completed_attempt(db, uuid.uuid4(), seeded.exam, 0.5, now, {str(q1): "b", str(q2): "a"}, all_ids)
        create_completed_attempt(db, uuid.uuid4(), seeded.exam, 0.2, now, {str(q1): "b"}, all_ids)

        user_id = uuid.uuid4()
        for correct in (True, False):
            progress.add_answer_event(
                db,
                user_id=user_id,
                question_id=q1,
                objective_id=oid,
                selected_answer="a" if correct else "b",
                is_correct=correct,
                answered_at=now,
            )
        db.commit()

        summary = recompute_question_quality(db, seeded.exam.id)

        assert summary == {"exam_id": str(seeded.exam.id), "questions_updated": 3, "discrimination_defined": 2}
        questions = content.get_questions(db, all_ids)
        assert questions[q1].total_attempts == 2
        assert questions[q1].correct_attempts == 1
        assert questions[q1].discrimination_index > 0
        assert questions[q2].discrimination_index > 0
        assert questions[q3].discrimination_index is None
        assert questions[q3].total_attempts == 0

    def test_unknown_exam(self, db):
        with pytest.raises(NotFoundError):
            recompute_question_quality(db, uuid.uuid4())
