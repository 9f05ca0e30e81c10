"""
Database engine and session management for MoneyMap.
Uses SQLModel with SQLite for persistent storage.
Features Write-Ahead Logging (WAL) mode for improved concurrency.
"""

from contextlib import contextmanager
from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.pool import StaticPool
from typing import Iterator, Optional
import logging

from config import get_settings

logger = logging.getLogger(__name__)

# Global engine instance
_engine: Optional[object] = None


def get_engine():
    """Get or create the database engine with WAL mode enabled."""
    global _engine
    if _engine is None:
        settings = get_settings()
        kwargs = {"echo": settings.db_echo}
        if settings.is_sqlite:
            kwargs["connect_args"] = {
                "check_same_thread": False,  # Allow use across threads
            }
        if settings.is_in_memory:
            # A single shared connection keeps the in-memory schema alive
            kwargs["poolclass"] = StaticPool
        _engine = create_engine(settings.database_url, **kwargs)
        if settings.is_sqlite and not settings.is_in_memory:
            _enable_wal_mode()
    return _engine


def set_engine(engine) -> None:
    """Replace the global engine (used by tests and scripts)."""
    global _engine
    _engine = engine


def _enable_wal_mode():
    """Enable SQLite WAL mode for improved concurrent read/write performance."""
    if _engine is None:
        return

    settings = get_settings()
    try:
        with _engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL")
            conn.exec_driver_sql(f"PRAGMA busy_timeout={settings.busy_timeout_ms}")
            conn.exec_driver_sql("PRAGMA foreign_keys=ON")
            logger.info("SQLite WAL mode enabled for concurrent access")
    except Exception as e:
        logger.warning(f"Could not enable WAL mode: {e}")


def init_db():
    """Initialize the database and create all tables."""
    from models import ClientRecord, PortfolioRecord, AssetRecord, TransactionRecord  # noqa: F401

    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    logger.info("Database initialized")


def get_session():
    """Get a new database session."""
    return Session(get_engine())


@contextmanager
def unit_of_work() -> Iterator[Session]:
    """
    Session for one logical operation.
    Committed once when the block completes, rolled back if anything raises.
    """
    session = Session(get_engine(), expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
