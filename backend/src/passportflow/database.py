"""Database session factory and configuration.

Provides database connectivity and session management for the PassportFlow
backend. Repositories receive a ``Session`` and own commit/rollback of the
aggregate they save.
"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .config import get_settings
from .models.base import Base


def build_engine(database_url: str) -> Engine:
    """Create an engine; pool settings only apply to non-SQLite databases."""
    engine_kwargs = {
        "pool_pre_ping": True,  # Verify connections before using
        "echo": False,  # Set to True for SQL query logging
    }
    if not database_url.startswith("sqlite"):
        engine_kwargs["pool_size"] = 5
        engine_kwargs["max_overflow"] = 10
    return create_engine(database_url, **engine_kwargs)


engine = build_engine(get_settings().DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def create_schema(bind: Engine = None) -> None:
    """Create any missing tables."""
    Base.metadata.create_all(bind=bind or engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency for FastAPI endpoints."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
