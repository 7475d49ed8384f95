"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
import random
import time
from typing import Any, Callable, Generator, Optional, TypeVar

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from lessonbook.core.config import settings

logger = logging.getLogger(__name__)


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Engine options for the configured dialect."""

    if db_url.startswith("sqlite"):
        # Request threads share one file; writers wait on the busy timeout.
        return {
            "connect_args": {"check_same_thread": False, "timeout": 10},
            "echo": settings.database_echo,
        }
    return {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_timeout": 5,
        "pool_recycle": 1800,
        "pool_pre_ping": True,
        "echo": settings.database_echo,
        "connect_args": {"connect_timeout": 5, "application_name": "lessonbook_api"},
    }


def _unicode_lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if isinstance(value, str) else value


def create_db_engine(db_url: str) -> Engine:
    engine = create_engine(db_url, **_build_engine_kwargs(db_url))
    is_sqlite = db_url.startswith("sqlite")

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["connect_time"] = datetime.now()
        if is_sqlite:
            # SQLite's built-in lower() only folds ASCII.
            dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)
        logger.debug("Database connection established")

    return engine


engine: Engine = create_db_engine(settings.get_database_url())

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all tables (idempotent)."""
    from lessonbook import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def resolve_session_bind(session: Session) -> Optional[Connection | Engine]:
    """Return the engine/connection bound to a session without direct .bind access."""
    try:
        bind = session.get_bind()
        if bind is not None:
            return bind
    except Exception:
        bind = None

    try:
        insp = inspect(session)
    except Exception:
        return None

    return getattr(insp, "bind", None)


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """
    Return SQLAlchemy dialect name without touching Session.bind directly.

    Falls back to ``default`` when the bound engine cannot be resolved.
    """
    bind = resolve_session_bind(session)
    if bind is None:
        return default
    dialect = getattr(bind, "dialect", None)
    name = getattr(dialect, "name", None)
    return name or default


T = TypeVar("T")

# SQLSTATEs for serialization failure and deadlock.
_RETRYABLE_SQLSTATES = {"40001", "40P01"}
_RETRYABLE_ERROR_SNIPPETS = (
    "deadlock detected",
    "could not serialize access",
    "database is locked",
    "server closed the connection",
    "ssl connection has been closed unexpectedly",
)


def is_transient_db_error(exc: BaseException) -> bool:
    """True when ``exc`` (or the store error it wraps) is worth retrying."""

    current: Optional[BaseException] = exc
    while current is not None:
        if isinstance(current, DBAPIError):
            orig = getattr(current, "orig", None)
            pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
            if pgcode in _RETRYABLE_SQLSTATES:
                return True
            message = str(current).lower()
            return any(snippet in message for snippet in _RETRYABLE_ERROR_SNIPPETS)
        current = current.__cause__
    return False


def _retry_delay(attempt: int) -> float:
    base = 0.05 * (2 ** (attempt - 1))
    return base + random.uniform(0, 0.05 * attempt)


def with_db_retry(
    op_name: str,
    func: Callable[[], T],
    *,
    max_attempts: int = 3,
    is_retryable: Callable[[BaseException], bool] = is_transient_db_error,
) -> T:
    """
    Execute a DB operation, retrying transient conflicts and disconnects.

    ``func`` must be safe to re-run from scratch: each attempt should open and
    finish its own transaction.
    """

    attempt = 1
    while True:
        try:
            return func()
        except Exception as exc:
            if attempt >= max_attempts or not is_retryable(exc):
                raise

            delay = _retry_delay(attempt)
            logger.warning(
                "Transient DB failure detected, retrying",
                extra={
                    "event": "db_retry",
                    "op": op_name,
                    "attempt": attempt,
                    "delay": delay,
                    "error": str(exc),
                },
            )
            time.sleep(delay)
            attempt += 1


__all__ = [
    "Base",
    "SessionLocal",
    "create_db_engine",
    "engine",
    "get_db",
    "get_dialect_name",
    "init_db",
    "is_transient_db_error",
    "with_db_retry",
]
