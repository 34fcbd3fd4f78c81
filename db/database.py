#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
SQLAlchemy engine and session management for Videocatalog.

One engine per process, one session per request. ``init_db`` creates the
schema on startup.
"""

from typing import Iterator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from config import config
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine for ``database_url``.

    SQLite connections are shared across FastAPI's worker threads, and the
    in-memory variant is pinned to a single connection so every session sees
    the same database.
    """
    kwargs = {"echo": echo}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **kwargs)

    if is_sqlite:
        # LIKE is case-insensitive on SQLite unless told otherwise
        @event.listens_for(engine, "connect")
        def _enable_case_sensitive_like(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA case_sensitive_like = ON")
            cursor.close()

    return engine


def init_db(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create the global engine and session factory, then the tables.

    Args:
        database_url: Overrides config.DATABASE_URL when given.
        echo: Overrides config.DB_ECHO when given.

    Returns:
        Engine: The initialized engine.
    """
    global _engine, _session_factory

    # Import the ORM models so they register on Base.metadata
    from db import models  # noqa: F401

    url = database_url or config.DATABASE_URL
    _engine = create_db_engine(url, echo=config.DB_ECHO if echo is None else echo)
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)
    Base.metadata.create_all(_engine)
    logger.info("Database initialized.", dialect=_engine.dialect.name)
    return _engine


def close_db() -> None:
    """Dispose of the engine's connection pool."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
        logger.info("Database engine disposed.")
    _engine = None
    _session_factory = None


def get_engine() -> Engine:
    """Return the current engine. Raises if init_db() has not run."""
    if _engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _engine


def get_session() -> Iterator[Session]:
    """Yield a session bound to the global engine and close it afterwards."""
    if _session_factory is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    session = _session_factory()
    try:
        yield session
    finally:
        session.close()
