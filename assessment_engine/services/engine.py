"""Public engine operations.

Each operation takes a SQLAlchemy session first and commits its own unit of
work. Errors are subclasses of ``assessment_engine.core.errors.EngineError``.
"""

from assessment_engine.services.lifecycle import is_expired
from assessment_engine.services.readiness import get_readiness
from assessment_engine.services.study_sessions import (
    abandon_session,
    complete_session,
    expire_session,
    next_batch,
    pause_session,
    resume_session,
    start_session,
    submit_answer,
)
from assessment_engine.services.test_attempts import (
    abandon_test_attempt,
    expire_test_attempt,
    finalize_test,
    start_test_attempt,
    submit_test_answer,
)

__all__ = [
    "start_session",
    "next_batch",
    "submit_answer",
    "pause_session",
    "resume_session",
    "complete_session",
    "abandon_session",
    "expire_session",
    "start_test_attempt",
    "submit_test_answer",
    "finalize_test",
    "abandon_test_attempt",
    "expire_test_attempt",
    "get_readiness",
    "is_expired",
]
