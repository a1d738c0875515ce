"""
Database configuration and connection management.

The repository never opens connections itself: callers hand it an
executor obtained from the helpers here (or from their own engine) and
own the transaction around it.
"""

import time
from functools import lru_cache
from typing import Any, Generator, Optional, Protocol

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, Result
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings
from .logging_config import get_logger
from .models import metadata

logger = get_logger(__name__)


class Executor(Protocol):
    """
    Anything that can run a single SQLAlchemy statement.

    ``sqlalchemy.engine.Connection`` and ``sqlalchemy.orm.Session`` both
    satisfy this.
    """

    def execute(self, statement: Any, *args: Any, **kwargs: Any) -> Result:
        ...


def get_connect_args(db_url: str) -> dict:
    """
    Get database-specific connection arguments.

    Args:
        db_url: Database connection URL

    Returns:
        Connection arguments dict
    """
    if db_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def _sanitize_url(db_url: str) -> str:
    if "@" in db_url:
        return db_url.split("@")[0].rsplit(":", 1)[0] + ":***@..."
    return db_url


def _attach_query_logging(engine: Engine) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        # One start time per execution; nothing is stored on the connection.
        if context is not None:
            context._query_start_time = time.perf_counter()

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        start = getattr(context, "_query_start_time", None)
        if start is None:
            return
        total_time_ms = (time.perf_counter() - start) * 1000
        if total_time_ms > settings.SLOW_QUERY_THRESHOLD_MS:
            logger.warning(
                "slow query detected",
                query_time_ms=round(total_time_ms, 2),
                statement=statement[:200],
            )


def create_db_engine(db_url: Optional[str] = None) -> Engine:
    """
    Create an engine configured from settings.

    Args:
        db_url: Override for ``settings.DATABASE_URL``

    Returns:
        SQLAlchemy engine with slow query logging attached
    """
    db_url = db_url or settings.DATABASE_URL
    logger.info("creating database engine", url=_sanitize_url(db_url))

    if db_url.startswith("sqlite"):
        # In-memory SQLite databases only exist for a single connection.
        engine = create_engine(
            db_url,
            connect_args=get_connect_args(db_url),
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            db_url,
            connect_args=get_connect_args(db_url),
            pool_pre_ping=settings.DATABASE_POOL_PRE_PING,
            pool_recycle=settings.DATABASE_POOL_RECYCLE,
            pool_timeout=settings.DATABASE_POOL_TIMEOUT,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
        )

    _attach_query_logging(engine)
    return engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Process-wide engine, created on first use."""
    return create_db_engine()


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker:
    """Session factory bound to the process-wide engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """
    Get a database session for dependency injection.

    Yields:
        SQLAlchemy database session, closed afterwards
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Optional[Engine] = None) -> None:
    """
    Create the gateway table if it does not exist.

    Schema migrations are managed elsewhere; this is for development and
    tests.
    """
    engine = engine or get_engine()
    logger.info("initializing database tables")
    metadata.create_all(bind=engine, checkfirst=True)
