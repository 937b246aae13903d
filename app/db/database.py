"""
Database engine and session management.
"""

import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from app.config import get_settings
from app.db.models import Base

logger = logging.getLogger(__name__)
settings = get_settings()


def build_engine(database_url: str):
    """Create an engine for the configured store."""
    if database_url.startswith("postgresql"):
        return create_engine(database_url, poolclass=NullPool)
    # SQLite connections are shared across the threadpool FastAPI runs sync work in
    return create_engine(database_url, connect_args={"check_same_thread": False})


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db():
    """Create any missing tables."""
    logger.info("Creating database tables")
    Base.metadata.create_all(bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
