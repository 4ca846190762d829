"""
Database engine and session management.

PostgreSQL in production; a sqlite:// DATABASE_URL works for local runs.
Request handlers get their session from the factory stored on
app.state.session_factory, so tests can point the whole app (including the
audit log and background publication) at an in-memory database.
"""

import logging
from collections.abc import Callable, Generator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from brote.core.config import settings

logger = logging.getLogger(__name__)


def _connect_args(url: str) -> dict:
    # FastAPI runs sync routes in a thread pool.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
    connect_args=_connect_args(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Dependency that yields a session from the app's session factory and closes it when done."""
    session_factory: Callable[[], Session] = getattr(
        request.app.state, "session_factory", SessionLocal
    )
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning("Database health check failed", extra={"reason": str(e)[:500]})
        return False
