"""Spaced-repetition cooldown rules."""

from datetime import datetime, timedelta

from assessment_engine.learning_engine.config import COOLDOWN_SCHEDULE


def cooldown_for(consecutive_correct: int) -> timedelta:
    """Interval before a question may be served again after N consecutive correct exposures."""
    schedule = COOLDOWN_SCHEDULE.value
    if consecutive_correct <= 0:
        return schedule[0]
    return schedule[min(consecutive_correct, len(schedule) - 1)]


def next_consecutive_correct(consecutive_correct: int, correct: bool) -> int:
    # A miss resets the streak
    return consecutive_correct + 1 if correct else 0


def next_eligible_at(consecutive_correct: int, seen_at: datetime) -> datetime:
    return seen_at + cooldown_for(consecutive_correct)


def is_eligible_at(eligible_at: datetime | None, now: datetime) -> bool:
    """Never-seen questions (no schedule) are always eligible."""
    if eligible_at is None:
        return True
    return now >= eligible_at
