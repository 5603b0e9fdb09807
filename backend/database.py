"""Database setup and session management."""

import logging
from functools import lru_cache

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def enable_sqlite_transactions(engine) -> None:
    """Let SQLAlchemy, not pysqlite, issue BEGIN on SQLite connections.

    pysqlite defers BEGIN until the first DML statement, so a SAVEPOINT
    opened before any write becomes the outermost transaction and its
    RELEASE commits. Emitting BEGIN ourselves keeps savepoints nested.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


@lru_cache
def get_engine():
    """Get or create the database engine (cached)."""
    connect_args = {}
    database_url = settings.DATABASE_URL

    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False

    engine = create_engine(
        database_url,
        connect_args=connect_args,
        echo=False,
    )
    if database_url.startswith("sqlite"):
        enable_sqlite_transactions(engine)
    return engine


def get_session_local():
    """Get a sessionmaker bound to the engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def init_db() -> None:
    """Create all tables that do not exist yet.

    Schema migrations are handled outside this package; this is only
    meant for fresh databases and local development.
    """
    import models  # noqa: F401  (registers every table on Base.metadata)

    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables ensured")


def get_db():
    """Provide a database session.

    Transaction conventions:
    - Default: services ``flush()``, the caller ``commit()``
    - Exceptions that commit internally:
      - ``QuoteService``: the quote cache upsert commits so a later
        failure in the caller cannot discard a fetched quote
      - ``HistoryService.replace_history()``: delete-then-insert runs in
        one transaction and commits
      - ``SnapshotService``: each snapshot upsert commits
    """
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
