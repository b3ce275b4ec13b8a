"""
db/session.py

Lazily created PostgreSQL engine, session factory and FastAPI dependency.
"""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db.config import EngineSettings, load_engine_settings

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def create_db_engine(settings: EngineSettings | None = None) -> Engine:
    """
    Upserts rely on ON CONFLICT and xmax, so the settings loader only accepts
    PostgreSQL URLs.
    """

    settings = settings or load_engine_settings()
    return create_engine(
        settings.url,
        echo=settings.echo,
        pool_pre_ping=True,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_recycle=settings.pool_recycle_seconds,
        connect_args=settings.connect_args(),
    )


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_db_engine()
        logger.info("Database engine created dialect=%s", _engine.dialect.name)
    return _engine


def SessionLocal() -> Session:
    """Open a session on the shared engine; call sites use it like a sessionmaker."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)
    return _session_factory()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Session for work outside a request. Rolls back on error; callers commit.
    """

    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Generator[Session, None, None]:
    with SessionLocal() as db:
        yield db
