"""State machines and deadline checks for study sessions and test attempts."""

from datetime import datetime

from assessment_engine.core.clock import ensure_utc
from assessment_engine.core.errors import ValidationError
from assessment_engine.models.session import AttemptState, SessionState, StudySession, TestAttempt

SESSION_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.CREATED: frozenset({SessionState.ACTIVE, SessionState.ABANDONED}),
    SessionState.ACTIVE: frozenset({SessionState.PAUSED, SessionState.COMPLETED, SessionState.ABANDONED}),
    SessionState.PAUSED: frozenset({SessionState.ACTIVE, SessionState.COMPLETED, SessionState.ABANDONED}),
    SessionState.COMPLETED: frozenset(),
    SessionState.ABANDONED: frozenset(),
}

# completed -> invalidated is reachable only through a duplicate finalize
ATTEMPT_TRANSITIONS: dict[AttemptState, frozenset[AttemptState]] = {
    AttemptState.IN_PROGRESS: frozenset({AttemptState.COMPLETED, AttemptState.ABANDONED, AttemptState.INVALIDATED}),
    AttemptState.COMPLETED: frozenset({AttemptState.INVALIDATED}),
    AttemptState.ABANDONED: frozenset(),
    AttemptState.INVALIDATED: frozenset(),
}


def is_expired(entity: StudySession | TestAttempt, now: datetime) -> bool:
    """True once ``now`` is past the server-side deadline."""
    return ensure_utc(now) > ensure_utc(entity.expires_at)


def transition_session(session: StudySession, target: SessionState) -> None:
    current = SessionState(session.state)
    if target not in SESSION_TRANSITIONS[current]:
        raise ValidationError(
            f"Study session cannot move from {current.value} to {target.value}",
            {"session_id": str(session.id), "state": current.value, "target": target.value},
        )
    session.state = target


def transition_attempt(attempt: TestAttempt, target: AttemptState) -> None:
    current = AttemptState(attempt.state)
    if target not in ATTEMPT_TRANSITIONS[current]:
        raise ValidationError(
            f"Test attempt cannot move from {current.value} to {target.value}",
            {"attempt_id": str(attempt.id), "state": current.value, "target": target.value},
        )
    attempt.state = target
