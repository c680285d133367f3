"""
Database Session Management
Creates SQLAlchemy engines and session factories for the remote record store.

Unlike a web backend there is no request-scoped session: each record store
call opens a session from the factory and closes it before returning.
"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from foodscan.core.config import settings
from foodscan.db.base import Base


def create_db_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create the engine for the configured database.

    Configuration:
    - echo: log SQL queries when debug mode is enabled
    - pool_pre_ping: verify connections before using them
    - in-memory SQLite shares one connection so every session sees the same tables
    """
    url = database_url or settings.DATABASE_URL
    echo = settings.DEBUG if echo is None else echo

    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    if url.startswith("sqlite"):
        return create_engine(url, echo=echo, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        echo=echo,
        pool_pre_ping=True,  # Check connection health before using
        pool_recycle=3600,  # Recycle connections every hour
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    """
    Session factory bound to the engine.

    - autocommit=False: explicit commit() calls
    - autoflush=False: explicit flush() calls
    - expire_on_commit=False: rows stay readable after the session closes
    """
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine
    )


def init_db(engine: Engine) -> None:
    """Create all tables that don't exist yet (safe to run multiple times)."""
    # Importing the models registers their tables on Base.metadata
    import foodscan.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
