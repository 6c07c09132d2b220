"""
Question Selector Core - Pure selection logic.

Objectives are drawn from a priority distribution that favours heavy,
weakly-mastered objectives; questions are drawn uniformly inside the chosen
objective's filtered pool. All randomness flows through an injected
``random.Random`` so a given seed always produces the same batch.
"""

import hashlib
import logging
import random
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from assessment_engine.core.errors import InsufficientQuestionPoolError
from assessment_engine.learning_engine.config import (
    DIFFICULTY_MAX,
    DIFFICULTY_MIN,
    SELECTION_BAND_HALF_WIDTH,
    SELECTION_DEFAULT_TARGET_DIFFICULTY,
    SELECTION_MAX_REDISTRIBUTION_ROUNDS,
    SELECTION_STEP_DOWN_ACCURACY,
    SELECTION_STEP_UP_ACCURACY,
)
from assessment_engine.learning_engine.contracts import DifficultyBand

logger = logging.getLogger(__name__)


@dataclass
class ObjectivePool:
    """An objective with its weight, mastery and filtered question pool."""

    objective_id: UUID
    weight: float
    mastery: float
    question_ids: list[UUID] = field(default_factory=list)

    @property
    def priority(self) -> float:
        return compute_priority(self.weight, self.mastery)

    def to_dict(self) -> dict[str, Any]:
        return {
            "objective_id": str(self.objective_id),
            "weight": self.weight,
            "mastery": round(self.mastery, 4),
            "priority": round(self.priority, 4),
            "pool_size": len(self.question_ids),
        }


def create_seeded_rng(seed: str) -> random.Random:
    """Random instance seeded from the sha256 of ``seed``."""
    digest = hashlib.sha256(seed.encode()).digest()
    return random.Random(int.from_bytes(digest[:8], "big"))


def compute_priority(weight: float, mastery: float) -> float:
    """priority = w * (1 - m)."""
    return weight * (1.0 - mastery)


def normalize(priorities: dict[UUID, float], fallback: dict[UUID, float]) -> dict[UUID, float]:
    """
    Normalise priorities to a probability distribution.

    When every priority is zero (everything fully mastered) the fallback
    weights are normalised instead so sampling can still proceed.
    """
    total = sum(priorities.values())
    if total <= 0:
        priorities = {oid: fallback[oid] for oid in priorities}
        total = sum(priorities.values())
    if total <= 0:
        # Degenerate weights: uniform
        n = len(priorities)
        return {oid: 1.0 / n for oid in priorities} if n else {}
    return {oid: p / total for oid, p in priorities.items()}


def target_difficulty(stored_target: int | None, recent_accuracy: float | None) -> int:
    """
    Step the difficulty target from rolling accuracy.

    > step-up accuracy moves the target up one level, < step-down accuracy
    moves it down one level, anything else (including no history) keeps it.
    """
    target = stored_target if stored_target is not None else SELECTION_DEFAULT_TARGET_DIFFICULTY.value
    if recent_accuracy is not None:
        if recent_accuracy > SELECTION_STEP_UP_ACCURACY.value:
            target += 1
        elif recent_accuracy < SELECTION_STEP_DOWN_ACCURACY.value:
            target -= 1
    return max(DIFFICULTY_MIN.value, min(DIFFICULTY_MAX.value, target))


def difficulty_band(target: int) -> DifficultyBand:
    half = SELECTION_BAND_HALF_WIDTH.value
    return DifficultyBand(
        low=max(DIFFICULTY_MIN.value, target - half),
        high=min(DIFFICULTY_MAX.value, target + half),
    )


def sample_batch(
    pools: list[ObjectivePool],
    count: int,
    rng: random.Random,
    max_rounds: int | None = None,
) -> list[UUID]:
    """
    Draw ``count`` distinct questions across objective pools.

    Objectives are drawn with replacement from the normalised priority
    distribution; each draw takes a uniformly random question out of that
    objective's pool. A draw that lands on an exhausted objective is a miss:
    after the round, exhausted objectives are removed, the remaining mass is
    renormalised and the missed draws are resampled.

    Args:
        pools: Filtered pools, one per candidate objective
        count: Batch size
        rng: Random source
        max_rounds: Redistribution rounds allowed

    Returns:
        Question ids in draw order

    Raises:
        InsufficientQuestionPoolError: Fewer than ``count`` questions in total,
            or misses remain after ``max_rounds`` redistributions
    """
    if max_rounds is None:
        max_rounds = SELECTION_MAX_REDISTRIBUTION_ROUNDS.value

    available = sum(len(p.question_ids) for p in pools)
    if available < count:
        raise InsufficientQuestionPoolError(
            f"Only {available} eligible questions for a batch of {count}",
            requested=count,
            available=available,
        )

    remaining = {p.objective_id: list(p.question_ids) for p in pools}
    weights = {p.objective_id: p.weight for p in pools}
    priorities = {p.objective_id: p.priority for p in pools}

    # Shuffled order breaks ties between equal-probability objectives
    order = [p.objective_id for p in pools if remaining[p.objective_id]]
    rng.shuffle(order)

    selected: list[UUID] = []
    draws = count
    rounds = 0

    while True:
        probabilities = normalize({oid: priorities[oid] for oid in order}, weights)
        draw_weights = [probabilities[oid] for oid in order]

        missed = 0
        for _ in range(draws):
            oid = rng.choices(order, weights=draw_weights, k=1)[0]
            pool = remaining[oid]
            if not pool:
                missed += 1
                continue
            selected.append(pool.pop(rng.randrange(len(pool))))

        if missed == 0:
            return selected

        rounds += 1
        order = [oid for oid in order if remaining[oid]]
        logger.debug(f"Redistribution round {rounds}: {missed} missed draws over {len(order)} objectives")
        if rounds > max_rounds or not order:
            raise InsufficientQuestionPoolError(
                f"Could not fill batch of {count} after {rounds - 1} redistribution rounds",
                requested=count,
                available=available,
            )
        draws = missed


def allocate_quotas(weights: dict[UUID, float], supply: dict[UUID, int], total: int) -> dict[UUID, int]:
    """
    Split ``total`` questions across objectives proportional to weight.

    Largest-remainder rounding, each quota capped by the objective's supply;
    any shortfall is handed to objectives that still have questions, heaviest
    first. The result sums to min(total, total supply).
    """
    objective_ids = sorted(weights, key=lambda oid: (-weights[oid], str(oid)))
    weight_total = sum(weights.values()) or 1.0

    # Rounded so float noise cannot flip a floor
    raw = {oid: round(total * weights[oid] / weight_total, 9) for oid in objective_ids}
    quotas = {oid: int(raw[oid]) for oid in objective_ids}

    leftover = total - sum(quotas.values())
    by_remainder = sorted(objective_ids, key=lambda oid: (-(raw[oid] - quotas[oid]), -weights[oid], str(oid)))
    for oid in by_remainder[:leftover]:
        quotas[oid] += 1

    for oid in objective_ids:
        quotas[oid] = min(quotas[oid], supply.get(oid, 0))

    shortfall = min(total, sum(supply.get(oid, 0) for oid in objective_ids)) - sum(quotas.values())
    for oid in objective_ids:
        if shortfall <= 0:
            break
        spare = supply.get(oid, 0) - quotas[oid]
        if spare > 0:
            extra = min(spare, shortfall)
            quotas[oid] += extra
            shortfall -= extra

    return quotas
