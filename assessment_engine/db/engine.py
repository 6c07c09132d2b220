"""Database engine configuration."""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from assessment_engine.core.config import settings


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite defers BEGIN until the first DML statement, which breaks
    # SAVEPOINT; take over transaction control so begin_nested() is honoured.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_db_engine(url: str | None = None) -> Engine:
    """Create SQLAlchemy engine with store timeouts from settings."""
    url = url or settings.DATABASE_URL
    timeout = settings.STORE_TIMEOUT_SECONDS

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"timeout": timeout, "check_same_thread": False},
            echo=False,
        )
        _enable_sqlite_savepoints(engine)
        return engine

    connect_args = {}
    if url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={int(timeout * 1000)}"

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=timeout,
        connect_args=connect_args,
        echo=False,
    )


# Global engine instance
engine = create_db_engine()
