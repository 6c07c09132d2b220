"""Tests for the readiness predictor."""

import math
import uuid
from datetime import timedelta

import pytest

from assessment_engine.core.errors import NotFoundError
from assessment_engine.learning_engine.contracts import ObjectiveWeight
from assessment_engine.learning_engine.mastery.service import update_mastery
from assessment_engine.learning_engine.readiness.core import (
    ReadinessParams,
    exponential_moving_average,
    predict_readiness,
    recommend_objectives,
    score_variance,
)
from assessment_engine.services.engine import get_readiness
from tests.helpers.seed import create_completed_attempt, create_test_exam


@pytest.fixture
def objectives():
    return [uuid.uuid4(), uuid.uuid4()]


@pytest.fixture
def weights(objectives):
    return [
        ObjectiveWeight(objective_id=objectives[0], weight=0.6),
        ObjectiveWeight(objective_id=objectives[1], weight=0.4),
    ]


class TestReadinessCore:
    """Test the pure prediction."""

    def test_no_tests_uses_mastery_and_prior(self, weights, objectives, now):
        estimate = predict_readiness(weights, {objectives[0]: 0.5}, [], now)

        assert estimate.mastery_component == pytest.approx(0.3)
        assert estimate.test_trend == pytest.approx(0.3)
        assert estimate.predicted_score == pytest.approx(0.3)
        # 1.96 * sqrt(0.0225)
        assert estimate.confidence_low == pytest.approx(0.3 - 0.294)
        assert estimate.confidence_high == pytest.approx(0.3 + 0.294)
        assert estimate.tests_considered == 0

    def test_blends_mastery_and_test_trend(self, weights, objectives, now):
        estimate = predict_readiness(weights, {objectives[0]: 1.0, objectives[1]: 1.0}, [0.5, 0.7, 0.9], now)

        assert estimate.test_trend == pytest.approx(0.662)
        assert estimate.predicted_score == pytest.approx(0.6 * 1.0 + 0.4 * 0.662)

    def test_interval_clamped(self, weights, objectives, now):
        estimate = predict_readiness(weights, {objectives[0]: 1.0, objectives[1]: 1.0}, [1.0], now)

        assert estimate.predicted_score == pytest.approx(1.0)
        assert estimate.confidence_high == 1.0
        assert estimate.confidence_low == pytest.approx(0.706)

    def test_interval_contains_prediction(self, weights, objectives, now):
        estimate = predict_readiness(weights, {objectives[0]: 0.2}, [0.1, 0.9, 0.4], now)
        assert estimate.confidence_low <= estimate.predicted_score <= estimate.confidence_high

    def test_ema_seeded_with_oldest(self):
        assert exponential_moving_average([0.8], 0.3) == pytest.approx(0.8)
        assert exponential_moving_average([0.5, 0.7, 0.9], 0.3) == pytest.approx(0.662)

    def test_sample_variance(self):
        assert score_variance([0.6, 0.8], 0.0225) == pytest.approx(0.02)
        assert score_variance([0.6], 0.0225) == 0.0225

    def test_recommendations_by_remaining_priority(self):
        a, b, c, d = (uuid.uuid4() for _ in range(4))
        weights = [
            ObjectiveWeight(objective_id=a, weight=0.4),
            ObjectiveWeight(objective_id=b, weight=0.3),
            ObjectiveWeight(objective_id=c, weight=0.2),
            ObjectiveWeight(objective_id=d, weight=0.1),
        ]
        levels = {a: 0.9, b: 0.0, c: 0.0, d: 1.0}

        assert recommend_objectives(weights, levels, 3) == [b, c, a]
        assert d not in recommend_objectives(weights, levels, 4)

    def test_params_validated(self):
        with pytest.raises(ValueError):
            ReadinessParams(mastery_weight=0.7, test_weight=0.4)
        with pytest.raises(ValueError):
            ReadinessParams(ema_alpha=0.0)

    def test_custom_params(self, weights, objectives, now):
        params = ReadinessParams(mastery_weight=1.0, test_weight=0.0)
        estimate = predict_readiness(weights, {objectives[0]: 0.5}, [0.9, 0.9], now, params)
        assert estimate.predicted_score == pytest.approx(0.3)
        assert math.isclose(estimate.confidence_low, estimate.confidence_high)


class TestReadinessService:
    """Test readiness against stored mastery and attempts."""

    @pytest.fixture
    def seeded(self, db):
        return create_test_exam(db, {"O1": (0.6, [3] * 3), "O2": (0.4, [3] * 3)})

    def test_uses_mastery_and_completed_attempts(self, db, seeded, now):
        user_id = uuid.uuid4()
        update_mastery(db, user_id, seeded.objective_id("O1"), True, now)
        db.commit()
        create_completed_attempt(db, user_id, seeded.exam, 0.5, now - timedelta(days=2))
        create_completed_attempt(db, user_id, seeded.exam, 0.7, now - timedelta(days=1))
        create_completed_attempt(db, uuid.uuid4(), seeded.exam, 0.1, now - timedelta(days=1))

        estimate = get_readiness(db, user_id, seeded.exam.id, now)

        assert estimate.tests_considered == 2
        assert estimate.mastery_component == pytest.approx(0.18)
        assert estimate.test_trend == pytest.approx(0.56)
        assert estimate.predicted_score == pytest.approx(0.332)
        assert estimate.confidence_high - estimate.predicted_score == pytest.approx(0.196)
        assert estimate.recommended_objective_ids[0] == seeded.objective_id("O2")

    def test_history_limited_to_recent_attempts(self, db, seeded, now):
        user_id = uuid.uuid4()
        for i in range(7):
            create_completed_attempt(db, user_id, seeded.exam, 0.1 * i, now - timedelta(days=7 - i))

        estimate = get_readiness(db, user_id, seeded.exam.id, now)
        assert estimate.tests_considered == 5

    def test_new_user(self, db, seeded, now):
        estimate = get_readiness(db, uuid.uuid4(), seeded.exam.id, now)

        assert estimate.predicted_score == 0.0
        assert estimate.confidence_low == 0.0
        assert estimate.confidence_high == pytest.approx(0.294)
        assert estimate.computed_at == now

    def test_unknown_exam(self, db, now):
        with pytest.raises(NotFoundError):
            get_readiness(db, uuid.uuid4(), uuid.uuid4(), now)
