"""Question selector service: build filtered pools from the stores and sample a batch."""

import logging
import random
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from assessment_engine.learning_engine.config import SELECTION_ROLLING_WINDOW
from assessment_engine.learning_engine.contracts import ExamConfig
from assessment_engine.learning_engine.eligibility.service import ineligible_question_ids
from assessment_engine.learning_engine.mastery.core import rolling_accuracy
from assessment_engine.learning_engine.mastery.service import is_mastery_achieved
from assessment_engine.learning_engine.selection.core import (
    ObjectivePool,
    difficulty_band,
    sample_batch,
    target_difficulty,
)
from assessment_engine.models.learning_mastery import MasteryRecord
from assessment_engine.repositories import content, progress

logger = logging.getLogger(__name__)


def effective_target(record: MasteryRecord | None, override: int | None = None) -> int:
    """
    Difficulty target for an objective.

    An explicit session override pins the target. Otherwise the stored
    target (default 3) is stepped once by the accuracy over the newest
    SELECTION_ROLLING_WINDOW answers; with no answers it stays put.
    """
    if override is not None:
        return override
    if record is None:
        return target_difficulty(None, None)

    accuracy = rolling_accuracy(list(record.recent_results or []), SELECTION_ROLLING_WINDOW.value)
    return target_difficulty(record.target_difficulty, accuracy)


def build_objective_pools(
    db: Session,
    user_id: UUID,
    exam: ExamConfig,
    now: datetime,
    objective_ids: list[UUID] | None = None,
    target_override: int | None = None,
    exclude: set[UUID] | None = None,
    weak_areas_only: bool = False,
) -> list[ObjectivePool]:
    """
    Build one filtered pool per candidate objective.

    Pools hold active questions inside the objective's difficulty band that
    are not cooling down for the user and not in ``exclude``.
    """
    exclude = exclude or set()
    weights = {o.objective_id: o.weight for o in exam.objectives}
    candidates = [oid for oid in weights if objective_ids is None or oid in objective_ids]

    records = progress.list_mastery_records(db, user_id, candidates)

    if weak_areas_only:
        weak = [oid for oid in candidates if not is_mastery_achieved(records.get(oid))]
        # Everything achieved: keep practising the whole set
        candidates = weak or candidates

    pools: list[ObjectivePool] = []
    for oid in candidates:
        record = records.get(oid)
        band = difficulty_band(effective_target(record, target_override))
        question_ids = content.get_eligible_question_pool(db, exam.exam_id, oid, band)
        cooling = ineligible_question_ids(db, user_id, question_ids, now)
        filtered = [qid for qid in question_ids if qid not in cooling and qid not in exclude]

        pools.append(
            ObjectivePool(
                objective_id=oid,
                weight=weights[oid],
                mastery=record.level if record else 0.0,
                question_ids=filtered,
            )
        )
    return pools


def select_questions(
    db: Session,
    user_id: UUID,
    exam: ExamConfig,
    count: int,
    now: datetime,
    rng: random.Random,
    objective_ids: list[UUID] | None = None,
    target_override: int | None = None,
    exclude: set[UUID] | None = None,
    weak_areas_only: bool = False,
) -> list[UUID]:
    """Sample ``count`` question ids for a user; raises InsufficientQuestionPoolError."""
    pools = build_objective_pools(
        db,
        user_id,
        exam,
        now,
        objective_ids=objective_ids,
        target_override=target_override,
        exclude=exclude,
        weak_areas_only=weak_areas_only,
    )
    batch = sample_batch(pools, count, rng)

    logger.debug(
        f"Selected {len(batch)} questions for user={user_id} exam={exam.exam_id}",
        extra={"pools": [p.to_dict() for p in pools]},
    )
    return batch
