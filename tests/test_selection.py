"""Tests for the question selector."""

import random
import uuid
from collections import Counter

import pytest

from assessment_engine.core.errors import InsufficientQuestionPoolError
from assessment_engine.learning_engine.selection.core import (
    ObjectivePool,
    allocate_quotas,
    compute_priority,
    create_seeded_rng,
    difficulty_band,
    normalize,
    sample_batch,
    target_difficulty,
)
from assessment_engine.learning_engine.selection.service import effective_target
from assessment_engine.models.learning_mastery import MasteryRecord


def _pool(weight: float, mastery: float, size: int) -> ObjectivePool:
    return ObjectivePool(
        objective_id=uuid.uuid4(),
        weight=weight,
        mastery=mastery,
        question_ids=[uuid.uuid4() for _ in range(size)],
    )


class TestPriorities:
    """Test priority computation and normalisation."""

    def test_priority_formula(self):
        assert compute_priority(0.4, 0.25) == pytest.approx(0.3)
        assert compute_priority(0.4, 1.0) == 0.0

    def test_normalize_sums_to_one(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        probs = normalize({a: 0.3, b: 0.1}, {a: 0.5, b: 0.5})
        assert probs[a] == pytest.approx(0.75)
        assert sum(probs.values()) == pytest.approx(1.0)

    def test_all_mastered_falls_back_to_weights(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        probs = normalize({a: 0.0, b: 0.0}, {a: 0.6, b: 0.4})
        assert probs[a] == pytest.approx(0.6)
        assert probs[b] == pytest.approx(0.4)


class TestDifficultyTarget:
    """Test adaptive difficulty targeting."""

    def test_no_history_keeps_default(self):
        assert target_difficulty(None, None) == 3

    def test_high_accuracy_steps_up(self):
        assert target_difficulty(3, 0.9) == 4
        assert target_difficulty(5, 1.0) == 5

    def test_low_accuracy_steps_down(self):
        assert target_difficulty(3, 0.4) == 2
        assert target_difficulty(1, 0.0) == 1

    def test_middle_accuracy_keeps_target(self):
        assert target_difficulty(3, 0.85) == 3
        assert target_difficulty(3, 0.5) == 3

    def test_band_is_clipped(self):
        assert (difficulty_band(3).low, difficulty_band(3).high) == (2, 4)
        assert (difficulty_band(1).low, difficulty_band(1).high) == (1, 2)
        assert (difficulty_band(5).low, difficulty_band(5).high) == (4, 5)


class TestEffectiveTarget:
    """Test the target derived from a stored mastery record."""

    def _record(self, results: list[bool], stored: int = 3) -> MasteryRecord:
        return MasteryRecord(
            questions_answered=len(results),
            recent_results=results[-10:],
            target_difficulty=stored,
        )

    def test_no_record_uses_default(self):
        assert effective_target(None) == 3

    def test_no_answers_keeps_stored(self):
        assert effective_target(self._record([], stored=4)) == 4

    def test_uses_newest_five_answers(self):
        assert effective_target(self._record([False] * 5 + [True])) == 2
        assert effective_target(self._record([True] * 6 + [False] * 5)) == 2
        assert effective_target(self._record([False] * 6 + [True] * 5)) == 4

    def test_partial_window(self):
        assert effective_target(self._record([True, True])) == 4
        assert effective_target(self._record([False])) == 2

    def test_steps_once_from_stored(self):
        assert effective_target(self._record([True] * 10, stored=4)) == 5
        assert effective_target(self._record([False] * 10, stored=1)) == 1

    def test_override_pins_target(self):
        assert effective_target(self._record([False] * 5), override=5) == 5


class TestSampleBatch:
    """Test weighted sampling with redistribution."""

    def test_batch_has_distinct_questions(self):
        pools = [_pool(0.5, 0.2, 10), _pool(0.5, 0.7, 10)]
        batch = sample_batch(pools, 15, random.Random(1))

        assert len(batch) == 15
        assert len(set(batch)) == 15
        all_ids = {qid for p in pools for qid in p.question_ids}
        assert set(batch) <= all_ids

    def test_same_seed_same_batch(self):
        pools = [_pool(0.6, 0.1, 20), _pool(0.4, 0.5, 20)]
        first = sample_batch(pools, 8, create_seeded_rng("session:0"))
        second = sample_batch(pools, 8, create_seeded_rng("session:0"))
        assert first == second

    def test_pools_are_not_mutated(self):
        pools = [_pool(1.0, 0.0, 5)]
        before = list(pools[0].question_ids)
        sample_batch(pools, 5, random.Random(3))
        assert pools[0].question_ids == before

    def test_insufficient_pool_raises(self):
        """Single objective with 3 eligible questions cannot fill a batch of 5."""
        pools = [_pool(1.0, 0.0, 3)]
        with pytest.raises(InsufficientQuestionPoolError) as exc_info:
            sample_batch(pools, 5, random.Random(0))
        assert exc_info.value.requested == 5
        assert exc_info.value.available == 3

    def test_exhausted_objective_mass_is_redistributed(self):
        small = _pool(0.9, 0.0, 2)
        large = _pool(0.1, 0.0, 20)
        batch = sample_batch([small, large], 12, random.Random(7))

        assert len(batch) == 12
        assert set(small.question_ids) <= set(batch)

    def test_empty_pool_is_skipped(self):
        empty = _pool(0.5, 0.0, 0)
        full = _pool(0.5, 0.0, 6)
        batch = sample_batch([empty, full], 6, random.Random(2))
        assert sorted(batch) == sorted(full.question_ids)

    def test_fully_mastered_objectives_still_sampled(self):
        pools = [_pool(0.5, 1.0, 5), _pool(0.5, 1.0, 5)]
        batch = sample_batch(pools, 4, random.Random(11))
        assert len(batch) == 4

    def test_sampling_follows_priority(self):
        weak = _pool(0.5, 0.0, 1000)
        strong = _pool(0.5, 0.9, 1000)
        owner = {qid: "weak" for qid in weak.question_ids}
        owner.update({qid: "strong" for qid in strong.question_ids})

        batch = sample_batch([weak, strong], 400, random.Random(5))
        counts = Counter(owner[qid] for qid in batch)

        # Expected share of the weak objective is 0.5 / 0.55 ~ 0.91
        assert counts["weak"] > 300
        assert counts["strong"] > 0


class TestAllocateQuotas:
    """Test proportional allocation for fixed test sets."""

    def test_largest_remainder(self):
        a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        quotas = allocate_quotas({a: 0.5, b: 0.3, c: 0.2}, {a: 100, b: 100, c: 100}, 65)
        assert sum(quotas.values()) == 65
        assert quotas[a] == 33  # 32.5 rounds up on the largest remainder tie
        assert quotas[b] == 19  # 19.5
        assert quotas[c] == 13

    def test_shortfall_filled_from_other_objectives(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        quotas = allocate_quotas({a: 0.5, b: 0.5}, {a: 2, b: 20}, 10)
        assert quotas == {a: 2, b: 8}

    def test_capped_by_total_supply(self):
        a, b = uuid.uuid4(), uuid.uuid4()
        quotas = allocate_quotas({a: 0.5, b: 0.5}, {a: 2, b: 3}, 10)
        assert quotas == {a: 2, b: 3}
