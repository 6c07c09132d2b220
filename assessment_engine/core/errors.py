"""Engine error taxonomy.

Every error carries a stable ``code``, a human ``message`` and optional
``details`` so the gateway can render a consistent envelope without knowing
engine internals.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

logger = logging.getLogger(__name__)


class EngineError(Exception):
    """Base class for all errors raised by the engine."""

    code = "ENGINE_ERROR"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | list[Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(EngineError):
    """Malformed count, exam, session or answer parameters."""

    code = "VALIDATION_ERROR"


class NotFoundError(EngineError):
    """Unknown session, attempt, exam, objective or question."""

    code = "NOT_FOUND"


class ConcurrencyConflict(EngineError):
    """Stale mastery version; retry with a fresh read."""

    code = "CONCURRENCY_CONFLICT"


class TimeExpiredError(EngineError):
    """Answer or finalize attempted after the server-side deadline.

    When raised for a test attempt, ``result`` holds the score persisted by
    the forced completion.
    """

    code = "TIME_EXPIRED"

    def __init__(self, message: str, details: dict[str, Any] | None = None, result: Any = None):
        super().__init__(message, details)
        self.result = result


class AlreadySubmittedError(EngineError):
    """Duplicate finalize on a terminal attempt."""

    code = "ALREADY_SUBMITTED"


class InsufficientQuestionPoolError(EngineError):
    """The requested batch cannot be filled from the eligible pool."""

    code = "INSUFFICIENT_QUESTION_POOL"

    def __init__(self, message: str, requested: int, available: int):
        super().__init__(message, {"requested": requested, "available": available})
        self.requested = requested
        self.available = available


class UpstreamTimeoutError(EngineError):
    """The content or progress store did not respond in time."""

    code = "UPSTREAM_TIMEOUT"


def validation_error_from_pydantic(exc: PydanticValidationError, message: str = "Invalid input") -> ValidationError:
    """Convert a pydantic validation failure into the engine error."""
    details: list[dict[str, Any]] = []
    for error in exc.errors():
        details.append(
            {
                "field": ".".join(str(loc) for loc in error.get("loc", [])),
                "issue": error.get("msg", "Validation error"),
                "type": error.get("type", "validation_error"),
            }
        )
    return ValidationError(message, details=details)


_TIMEOUT_MARKERS = ("timeout", "timed out", "database is locked", "lock wait", "statement_timeout")


def _is_timeout(exc: OperationalError) -> bool:
    text = str(exc.orig if exc.orig is not None else exc).lower()
    return any(marker in text for marker in _TIMEOUT_MARKERS)


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """Map store timeouts raised inside the block to UpstreamTimeoutError."""
    try:
        yield
    except PoolTimeoutError as exc:
        logger.warning(f"Store pool timeout during {operation}")
        raise UpstreamTimeoutError(f"Store timed out during {operation}", {"operation": operation}) from exc
    except OperationalError as exc:
        if not _is_timeout(exc):
            raise
        logger.warning(f"Store timeout during {operation}: {exc.orig}")
        raise UpstreamTimeoutError(f"Store timed out during {operation}", {"operation": operation}) from exc
