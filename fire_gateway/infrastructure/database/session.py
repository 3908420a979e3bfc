"""Database session management for the read-only projection queries"""

from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from fire_gateway.config import settings


def build_engine(database_url: str) -> Engine:
    """
    Engine for the finance store.

    SQLite (local runs, tests) gets a thread-shareable connection; server
    databases get a small pool recycled hourly, the workload is read-heavy.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency injection for database sessions; nothing here writes, so end with a rollback"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
