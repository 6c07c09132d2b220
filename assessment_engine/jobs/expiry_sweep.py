"""Expiry sweep: settle sessions and attempts whose deadline has passed.

The engine has no scheduler of its own; an external scheduler (cron, a job
runner) calls ``sweep_expired`` periodically. Operations also expire lazily,
so the sweep only tidies entities nobody touched again.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from assessment_engine.core.clock import ensure_utc
from assessment_engine.repositories import progress
from assessment_engine.services.study_sessions import expire_session
from assessment_engine.services.test_attempts import expire_test_attempt

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    sessions_abandoned: list[str] = field(default_factory=list)
    attempts_completed: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessions_abandoned": len(self.sessions_abandoned),
            "attempts_completed": len(self.attempts_completed),
        }


def sweep_expired(db: Session, now: datetime) -> SweepResult:
    """Abandon expired study sessions and force-complete expired test attempts."""
    now = ensure_utc(now)
    result = SweepResult()

    for session in progress.list_expired_study_sessions(db, now):
        expire_session(db, session, now)
        result.sessions_abandoned.append(str(session.id))

    for attempt in progress.list_expired_test_attempts(db, now):
        if expire_test_attempt(db, attempt, now) is not None:
            result.attempts_completed.append(str(attempt.id))

    logger.info(f"Expiry sweep finished: {result.to_dict()}")
    return result
