import logging
import time
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import (
    DATABASE_URL,
    DB_LOCK_TIMEOUT_MS,
    DB_LOG_SLOW_QUERIES,
    DB_MAX_OVERFLOW,
    DB_POOL_RECYCLE,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_SLOW_QUERY_THRESHOLD,
)

logger = logging.getLogger(__name__)


def is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def engine_options(url: str) -> dict:
    """Keyword arguments for create_engine appropriate to the backend"""
    if is_sqlite(url):
        # SQLite is used for local runs and tests; requests share the file across threads.
        # timeout is how long BEGIN IMMEDIATE waits for another writer
        return {"connect_args": {"check_same_thread": False, "timeout": DB_LOCK_TIMEOUT_MS / 1000}}
    return {
        "pool_pre_ping": True,  # Test connections before using
        "pool_recycle": DB_POOL_RECYCLE,
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": DB_POOL_TIMEOUT,
    }


def configure_engine(target: Engine) -> Engine:
    """Attach connection and query listeners to an engine"""
    if target.dialect.name == "sqlite":

        @event.listens_for(target, "connect")
        def configure_sqlite_connection(dbapi_connection, _connection_record):
            # Let SQLAlchemy emit BEGIN itself instead of pysqlite's deferred one
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(target, "begin")
        def begin_immediate(conn):
            # SQLite ignores FOR UPDATE; taking the write lock up front serializes
            # transactions so the overlap check and the insert cannot interleave
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    # Slow query logging for performance monitoring
    if DB_LOG_SLOW_QUERIES:

        @event.listens_for(target, "before_cursor_execute")
        def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
            conn.info.setdefault("query_start_time", []).append(time.time())

        @event.listens_for(target, "after_cursor_execute")
        def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
            total = time.time() - conn.info["query_start_time"].pop(-1)
            if total > DB_SLOW_QUERY_THRESHOLD:
                logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")

    return target


try:
    engine = configure_engine(create_engine(DATABASE_URL, echo=False, **engine_options(DATABASE_URL)))
    logger.info(f"✅ Database engine created ({engine.dialect.name})")
except Exception as e:
    logger.error(f"❌ Failed to create database engine: {e}")
    raise

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """
    Run a unit of work on the given session.

    Commits when the block finishes and rolls back on any exception before
    re-raising it, so callers never observe partial writes.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def set_lock_timeout(db: Session, timeout_ms: int = DB_LOCK_TIMEOUT_MS) -> None:
    """Bound how long row-lock waits may block inside the current transaction"""
    if db.get_bind().dialect.name == "postgresql":
        db.execute(text(f"SET LOCAL lock_timeout = {int(timeout_ms)}"))
