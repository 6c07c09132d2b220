"""
Readiness Predictor Core.

Blends weighted objective mastery with the trend of recent practice test
scores and attaches a normal-approximation confidence interval:

    mastery_component = sum(w_o * level_o)
    test_trend        = EMA(alpha) of the last N scores, oldest -> newest
                        (mastery_component when there are no tests)
    predicted         = a * mastery_component + b * test_trend
    CI                = predicted +/- z * sqrt(var / max(N, 1)), clamped to [0, 1]

var is the sample variance of the N scores when N >= 2, otherwise a prior.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import numpy as np

from assessment_engine.learning_engine.config import (
    READINESS_EMA_ALPHA,
    READINESS_MASTERY_WEIGHT,
    READINESS_PRIOR_VARIANCE,
    READINESS_RECOMMENDATION_COUNT,
    READINESS_TEST_WEIGHT,
    READINESS_Z_SCORE,
)
from assessment_engine.learning_engine.contracts import ObjectiveWeight, ReadinessEstimate
from assessment_engine.learning_engine.selection.core import compute_priority


@dataclass(frozen=True)
class ReadinessParams:
    """Tunable readiness coefficients."""

    mastery_weight: float = READINESS_MASTERY_WEIGHT.value
    test_weight: float = READINESS_TEST_WEIGHT.value
    ema_alpha: float = READINESS_EMA_ALPHA.value
    prior_variance: float = READINESS_PRIOR_VARIANCE.value
    z: float = READINESS_Z_SCORE.value
    recommendations: int = READINESS_RECOMMENDATION_COUNT.value

    def __post_init__(self):
        if abs(self.mastery_weight + self.test_weight - 1.0) > 1e-9:
            raise ValueError("mastery_weight and test_weight must sum to 1")
        if not 0.0 < self.ema_alpha <= 1.0:
            raise ValueError("ema_alpha must be in (0, 1]")
        if self.prior_variance < 0:
            raise ValueError("prior_variance must be non-negative")


def _clamp(x: float) -> float:
    return max(0.0, min(1.0, x))


def mastery_component(weights: list[ObjectiveWeight], levels: dict[UUID, float]) -> float:
    return _clamp(sum(w.weight * levels.get(w.objective_id, 0.0) for w in weights))


def exponential_moving_average(scores: list[float], alpha: float) -> float:
    """EMA seeded with the oldest score; ``scores`` must be non-empty."""
    ema = scores[0]
    for s in scores[1:]:
        ema = alpha * s + (1.0 - alpha) * ema
    return ema


def score_variance(scores: list[float], prior_variance: float) -> float:
    if len(scores) < 2:
        return prior_variance
    return float(np.var(np.asarray(scores, dtype=float), ddof=1))


def recommend_objectives(weights: list[ObjectiveWeight], levels: dict[UUID, float], limit: int) -> list[UUID]:
    """Objectives with the most remaining priority w * (1 - m), highest first."""
    ranked = sorted(
        weights,
        key=lambda w: (-compute_priority(w.weight, levels.get(w.objective_id, 0.0)), str(w.objective_id)),
    )
    return [w.objective_id for w in ranked if compute_priority(w.weight, levels.get(w.objective_id, 0.0)) > 0][:limit]


def predict_readiness(
    weights: list[ObjectiveWeight],
    levels: dict[UUID, float],
    test_scores: list[float],
    now: datetime,
    params: ReadinessParams | None = None,
) -> ReadinessEstimate:
    """
    Predict exam readiness.

    Args:
        weights: Exam objective weights
        levels: Mastery level per objective (missing = 0)
        test_scores: Recent completed test scores, oldest first
        now: Computation time
        params: Coefficients (defaults from the constants registry)

    Returns:
        ReadinessEstimate with predicted_score and a clamped interval
    """
    params = params or ReadinessParams()

    m = mastery_component(weights, levels)
    n = len(test_scores)
    trend = exponential_moving_average(test_scores, params.ema_alpha) if n else m

    predicted = _clamp(params.mastery_weight * m + params.test_weight * trend)
    variance = score_variance(test_scores, params.prior_variance)
    half_width = params.z * float(np.sqrt(variance / max(n, 1)))

    return ReadinessEstimate(
        predicted_score=predicted,
        confidence_low=_clamp(predicted - half_width),
        confidence_high=_clamp(predicted + half_width),
        computed_at=now,
        mastery_component=m,
        test_trend=trend,
        tests_considered=n,
        recommended_objective_ids=recommend_objectives(weights, levels, params.recommendations),
    )
