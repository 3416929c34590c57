from contextlib import contextmanager
from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import SQLModel, create_engine, Session
from config import Settings
import os
import logging

logger = logging.getLogger(__name__)

SQLITE_FILE = os.path.join(os.path.dirname(__file__), "pharma_dev.db")

PG_UNIQUE_VIOLATION = "23505"


def build_engine(settings: Settings) -> Engine:
    """Create the process-wide engine and its connection pool"""
    if settings.use_sqlite:
        # SQLite database for development
        database_url = settings.database_url if settings.database_url and settings.database_url.startswith("sqlite") \
            else f"sqlite:///{SQLITE_FILE}"
        return create_engine(
            database_url,
            echo=settings.db_echo,
            connect_args={"check_same_thread": False}
        )

    # PostgreSQL for production
    return create_engine(
        settings.database_url,
        echo=settings.db_echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,  # Handle stale connections
        pool_recycle=settings.db_pool_recycle,
        connect_args={"connect_timeout": settings.db_connect_timeout},
    )


def create_db_and_tables(engine: Engine):
    import models  # noqa: F401  registers the tables on SQLModel.metadata
    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    with Session(request.app.state.engine) as session:
        yield session


@contextmanager
def transaction(session: Session):
    """Commit on success, roll back on any failure"""
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == PG_UNIQUE_VIOLATION:
        return True
    message = str(orig if orig is not None else exc)
    return "UNIQUE constraint failed" in message or "duplicate key" in message


def check_database(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return False
