"""
Database Configuration
SQLAlchemy engine, session factory and transaction helper
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base, Session

from finance_portal.config.settings import settings
from finance_portal.utils.exceptions import PersistenceError

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    pool_pre_ping=True,
    connect_args=connect_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency that yields one session per request

    Yields:
        Session: Database session, closed when the request finishes
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Run a unit of work atomically

    Commits when the block exits cleanly and rolls back on any exception.
    Storage failures surface as PersistenceError so callers never see a
    partially applied change.

    Args:
        db: Request-scoped session
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError("Database operation failed") from e
    except Exception:
        db.rollback()
        raise
