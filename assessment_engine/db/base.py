"""Declarative base, portable column types and schema creation."""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from assessment_engine.core.clock import ensure_utc


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime that always round-trips as UTC.

    SQLite drops tzinfo on read; values are normalised on the way in and
    re-tagged on the way out so comparisons against aware ``now`` work on
    every backend.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect):
        if value is None:
            return None
        value = ensure_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value: datetime | None, dialect):
        if value is None:
            return None
        return ensure_utc(value)


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


def init_db(bind: Engine | None = None) -> None:
    """Create all tables on ``bind`` (defaults to the global engine)."""
    import assessment_engine.models  # noqa: F401

    if bind is None:
        from assessment_engine.db.engine import engine as bind

    Base.metadata.create_all(bind=bind)
