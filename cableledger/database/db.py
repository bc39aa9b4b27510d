"""Engine and session management for the ledger database."""

from __future__ import annotations

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from cableledger.core.config import get_config

logger = logging.getLogger(__name__)

config = get_config()
DATABASE_URL = config.DATABASE_URL

def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    # Bills and payments reference subscribers; SQLite only checks that when asked.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        sqlite_engine = create_engine(
            database_url,
            echo=config.DEBUG,
            connect_args={"check_same_thread": False},
        )
        event.listen(sqlite_engine, "connect", _enable_sqlite_foreign_keys)
        return sqlite_engine
    return create_engine(
        database_url,
        echo=config.DEBUG,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=10,
        max_overflow=20,
    )


def _configure_engine(database_url: str) -> None:
    global DATABASE_URL, engine, SessionLocal
    DATABASE_URL = database_url
    engine = _build_engine(database_url)
    # Payment and generation results are read after commit, so keep attributes loaded.
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


_configure_engine(DATABASE_URL)


def get_engine() -> Engine:
    return engine


def get_session_factory() -> sessionmaker:
    """Return the sessionmaker bound to the active engine."""
    return SessionLocal


def get_active_database_url() -> str:
    """Return the database URL the engine is bound to."""
    return DATABASE_URL


def reset_engine(database_url: str | None = None) -> None:
    """Dispose the current engine and rebind to `database_url` (default: same URL)."""
    engine.dispose()
    _configure_engine(database_url or DATABASE_URL)


def get_db() -> Generator[Session, None, None]:
    """Yield one session per request; handlers commit through their services."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _ping() -> None:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def verify_database_connection() -> bool:
    """Ping the configured database; the ledger never switches to another store."""
    try:
        _ping()
        return True
    except Exception as exc:
        logger.error(
            "database.connection_failed",
            extra={
                "event": "database.connection_failed",
                "database_url_scheme": DATABASE_URL.split("://", 1)[0],
                "reason": str(exc),
            },
        )
        return False
