import logging
import os
import time

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import DATABASE_URL

logger = logging.getLogger(__name__)

# Pool sizing only applies to server databases (PostgreSQL in production)
POOL_OPTIONS = {
    "pool_pre_ping": True,
    "pool_size": int(os.getenv("DB_POOL_SIZE", "5")),
    "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "10")),
    "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", "30")),
    "pool_recycle": int(os.getenv("DB_POOL_RECYCLE", "300")),
}
LOG_SLOW_QUERIES = os.getenv("DB_LOG_SLOW_QUERIES", "true").lower() == "true"
SLOW_QUERY_SECONDS = float(os.getenv("DB_SLOW_QUERY_THRESHOLD", "1.0"))


def _start_query_timer(conn, cursor, statement, parameters, context, executemany):
    conn.info.setdefault("query_started_at", []).append(time.perf_counter())


def _log_slow_query(conn, cursor, statement, parameters, context, executemany):
    elapsed = time.perf_counter() - conn.info["query_started_at"].pop()
    if elapsed > SLOW_QUERY_SECONDS:
        logger.warning(f"🐌 Slow query ({elapsed:.2f}s): {statement[:200]}...")


def build_engine(url: str = DATABASE_URL):
    """Create an engine for the clinic database (a local SQLite file by default)"""
    if url.startswith("sqlite"):
        # Request handlers run in a threadpool and share the file
        engine = create_engine(url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(url, **POOL_OPTIONS)
        logger.info(
            f"📊 Connection pool: size={POOL_OPTIONS['pool_size']}, "
            f"max_overflow={POOL_OPTIONS['max_overflow']}"
        )

    if LOG_SLOW_QUERIES:
        event.listen(engine, "before_cursor_execute", _start_query_timer)
        event.listen(engine, "after_cursor_execute", _log_slow_query)

    return engine


try:
    engine = build_engine()
    logger.info("✅ Database engine created successfully")
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
