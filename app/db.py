"""Database engine, session factory and declarative base."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import get_settings

Base = declarative_base()


def build_engine(database_url: str | None = None) -> Engine:
    """Create an engine for the configured database (SQLite gets thread-safe connect args)."""
    settings = get_settings()
    url = database_url or settings.database_url
    if url is None:
        raise ValueError("Database URL is not set.")
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
    )


engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def db_session() -> Iterator[Session]:
    """Session for code running outside a request (scripts, background jobs)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
