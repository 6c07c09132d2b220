"""Tests for the spaced-repetition eligibility filter."""

import uuid
from datetime import timedelta

import pytest

from assessment_engine.learning_engine.eligibility.core import (
    cooldown_for,
    is_eligible_at,
    next_consecutive_correct,
)
from assessment_engine.learning_engine.eligibility.service import (
    ineligible_question_ids,
    is_eligible,
    record_exposure,
)
from tests.helpers.seed import create_test_exam


class TestCooldownSchedule:
    """Test the cooldown table."""

    @pytest.mark.parametrize(
        "streak,expected",
        [
            (0, timedelta(0)),
            (1, timedelta(hours=1)),
            (2, timedelta(days=1)),
            (3, timedelta(days=4)),
            (4, timedelta(days=10)),
            (9, timedelta(days=10)),
        ],
    )
    def test_interval_by_streak(self, streak, expected):
        assert cooldown_for(streak) == expected

    def test_miss_resets_streak(self):
        assert next_consecutive_correct(3, False) == 0
        assert next_consecutive_correct(3, True) == 4

    def test_unseen_is_eligible(self, now):
        assert is_eligible_at(None, now)

    def test_boundary_is_eligible(self, now):
        assert is_eligible_at(now, now)
        assert not is_eligible_at(now + timedelta(seconds=1), now)


class TestExposureService:
    """Test exposure recording and cooldown enforcement against the store."""

    @pytest.fixture
    def question_id(self, db):
        seeded = create_test_exam(db, {"O1": (1.0, [3])})
        return seeded.question_ids("O1")[0]

    def test_never_seen_question_is_eligible(self, db, question_id, now):
        assert is_eligible(db, uuid.uuid4(), question_id, now)

    def test_cooldown_enforced_until_interval_elapses(self, db, question_id, now):
        user_id = uuid.uuid4()

        exposure = record_exposure(db, user_id, question_id, True, now)
        db.commit()

        assert exposure.consecutive_correct == 1
        assert exposure.next_eligible_at == now + timedelta(hours=1)
        assert not is_eligible(db, user_id, question_id, now + timedelta(minutes=59))
        assert is_eligible(db, user_id, question_id, now + timedelta(hours=1))

    def test_intervals_grow_with_consecutive_correct(self, db, question_id, now):
        user_id = uuid.uuid4()
        t = now
        expected = [timedelta(hours=1), timedelta(days=1), timedelta(days=4), timedelta(days=10), timedelta(days=10)]

        for interval in expected:
            exposure = record_exposure(db, user_id, question_id, True, t)
            db.commit()
            assert exposure.next_eligible_at - t == interval
            t = exposure.next_eligible_at

        assert exposure.times_seen == 5

    def test_incorrect_answer_makes_question_immediately_eligible(self, db, question_id, now):
        user_id = uuid.uuid4()
        record_exposure(db, user_id, question_id, True, now)
        db.commit()

        later = now + timedelta(hours=2)
        exposure = record_exposure(db, user_id, question_id, False, later)
        db.commit()

        assert exposure.consecutive_correct == 0
        assert exposure.last_correct is False
        assert is_eligible(db, user_id, question_id, later)

    def test_exposure_is_per_user(self, db, question_id, now):
        user_a, user_b = uuid.uuid4(), uuid.uuid4()
        record_exposure(db, user_a, question_id, True, now)
        db.commit()

        assert not is_eligible(db, user_a, question_id, now)
        assert is_eligible(db, user_b, question_id, now)

    def test_bulk_ineligible_ids(self, db, now):
        seeded = create_test_exam(db, {"O1": (1.0, [3, 3, 3])})
        q1, q2, q3 = seeded.question_ids("O1")
        user_id = uuid.uuid4()

        record_exposure(db, user_id, q1, True, now)
        record_exposure(db, user_id, q2, False, now)
        db.commit()

        assert ineligible_question_ids(db, user_id, [q1, q2, q3], now) == {q1}
