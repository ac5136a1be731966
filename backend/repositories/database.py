"""
Database engine, session factory and transaction scope.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, QueuePool

from models.config import settings


def create_db_engine():
    """
    Create database engine with appropriate configuration.

    PostgreSQL uses a tuned QueuePool. SQLite uses NullPool so every session
    opens its own connection.
    """
    if "sqlite" in settings.DATABASE_URL:
        return create_engine(
            settings.DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )
    return create_engine(
        settings.DATABASE_URL,
        poolclass=QueuePool,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )


engine = create_db_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Get database session with automatic cleanup."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Run a block of writes as one unit of work.

    Commits when the block exits normally. Any exception rolls back every
    statement issued inside the block and is re-raised unchanged.

    Args:
        db: Session the block writes through

    Yields:
        The same session
    """
    try:
        yield db
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.debug(f"Transaction rolled back: {exc!r}")
        raise
