"""Pytest configuration and shared fixtures."""

import os
from collections.abc import Generator
from datetime import datetime, timezone

os.environ.setdefault("ENV", "test")

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from assessment_engine.db.base import init_db
from assessment_engine.db.engine import create_db_engine


@pytest.fixture(scope="function")
def engine(tmp_path) -> Generator[Engine, None, None]:
    """A fresh SQLite file database per test."""
    test_engine = create_db_engine(f"sqlite:///{tmp_path / 'engine_test.db'}")
    init_db(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    """Database session; engine operations commit through it."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
