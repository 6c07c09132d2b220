"""
Mastery Core Math - Pure functions for the bounded incremental mastery model.

Each answer moves the level toward 1 (correct) or 0 (incorrect) by a
learning rate that decays with the number of answers seen:

    rate  = max(floor, base / sqrt(n + 1))
    delta = rate * (1 - level)   if correct
          = -rate * level        otherwise

The update is a convex combination of the current level and an endpoint of
[0, 1], so the level can never leave the unit interval; the final clamp only
absorbs floating point drift.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from assessment_engine.learning_engine.config import (
    MASTERY_ACHIEVED_LEVEL,
    MASTERY_LEARNING_RATE_BASE,
    MASTERY_LEARNING_RATE_FLOOR,
    MASTERY_WINDOW_ACCURACY,
    MASTERY_WINDOW_SIZE,
)


@dataclass
class MasteryState:
    """Snapshot of one mastery record, detached from the store."""

    level: float = 0.0
    questions_answered: int = 0
    correct_streak: int = 0
    recent_results: list[bool] = field(default_factory=list)
    last_answered_at: datetime | None = None


def clamp_level(level: float) -> float:
    """Clamp a mastery level to [0, 1]."""
    return max(0.0, min(1.0, level))


def learning_rate(questions_answered: int) -> float:
    """
    Learning rate for the next answer.

    Args:
        questions_answered: Answers recorded before this one

    Returns:
        Rate in [floor, base]
    """
    return max(
        MASTERY_LEARNING_RATE_FLOOR.value,
        MASTERY_LEARNING_RATE_BASE.value / math.sqrt(questions_answered + 1),
    )


def compute_delta(level: float, correct: bool, questions_answered: int) -> float:
    rate = learning_rate(questions_answered)
    if correct:
        return rate * (1.0 - level)
    return -rate * level


def push_result(recent_results: list[bool], correct: bool, window: int | None = None) -> list[bool]:
    """Append to the ring buffer, keeping the newest ``window`` bits."""
    window = window or MASTERY_WINDOW_SIZE.value
    return (list(recent_results) + [bool(correct)])[-window:]


def rolling_accuracy(recent_results: list[bool], window: int) -> float | None:
    """Accuracy over the newest ``window`` answers, None when there are none."""
    tail = list(recent_results)[-window:]
    if not tail:
        return None
    return sum(1 for r in tail if r) / len(tail)


def is_achieved(level: float, recent_results: list[bool]) -> bool:
    """
    Achieved iff the level is high enough AND a full recent window is accurate.

    A window shorter than MASTERY_WINDOW_SIZE never qualifies, so a handful of
    lucky early answers cannot mark an objective as mastered.
    """
    window = MASTERY_WINDOW_SIZE.value
    if level < MASTERY_ACHIEVED_LEVEL.value:
        return False
    if len(recent_results) < window:
        return False
    accuracy = rolling_accuracy(recent_results, window)
    return accuracy is not None and accuracy >= MASTERY_WINDOW_ACCURACY.value


def apply_answer(state: MasteryState, correct: bool, answered_at: datetime) -> tuple[MasteryState, dict[str, Any]]:
    """
    Apply one answer to a mastery state.

    Args:
        state: Current state (not modified)
        correct: Whether the answer was correct
        answered_at: Time of the answer

    Returns:
        (new_state, metadata) where metadata records the rate and delta used
    """
    rate = learning_rate(state.questions_answered)
    delta = compute_delta(state.level, correct, state.questions_answered)
    new_level = clamp_level(state.level + delta)

    new_state = MasteryState(
        level=new_level,
        questions_answered=state.questions_answered + 1,
        correct_streak=state.correct_streak + 1 if correct else 0,
        recent_results=push_result(state.recent_results, correct),
        last_answered_at=answered_at,
    )

    metadata = {
        "level_prior": state.level,
        "level_posterior": new_level,
        "learning_rate": rate,
        "delta": delta,
        "achieved": is_achieved(new_level, new_state.recent_results),
    }
    return new_state, metadata
