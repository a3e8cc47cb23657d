"""Database engine and session management for the venue booking engine."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import Settings, get_settings


logger = logging.getLogger(__name__)


class DatabaseConfig:
    """Database configuration settings."""

    POOL_TIMEOUT: int = 30
    POOL_RECYCLE: int = 3600
    POOL_PRE_PING: bool = True

    # Seconds SQLite waits on a locked database before raising
    SQLITE_BUSY_TIMEOUT: int = 30


def create_engine(
    url: str,
    pool_size: int = 5,
    max_overflow: int = 10,
    echo: bool = False,
) -> Engine:
    """
    Create SQLAlchemy engine.

    Args:
        url: Database URL
        pool_size: Number of connections to maintain in pool
        max_overflow: Max number of connections to create beyond pool_size
        echo: Whether to log all SQL statements

    Returns:
        SQLAlchemy engine
    """
    kwargs: Dict[str, Any] = {"echo": echo, "pool_pre_ping": DatabaseConfig.POOL_PRE_PING}

    if url.startswith("sqlite"):
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": DatabaseConfig.SQLITE_BUSY_TIMEOUT,
        }
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            # One shared connection so every session sees the same in-memory database
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=DatabaseConfig.POOL_TIMEOUT,
            pool_recycle=DatabaseConfig.POOL_RECYCLE,
        )

    return sa_create_engine(url, **kwargs)


class Database:
    """
    Process-wide store handle: engine plus session factory.

    Constructed explicitly at startup and passed to whatever needs it.
    """

    def __init__(self, url: str, pool_size: int = 5, max_overflow: int = 10, echo: bool = False):
        self.url = url
        self.engine = create_engine(url, pool_size=pool_size, max_overflow=max_overflow, echo=echo)
        self.session_factory = sessionmaker(
            bind=self.engine,
            class_=Session,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "Database":
        """Build a Database from application settings."""
        settings = settings or get_settings()
        return cls(
            settings.DATABASE_URL,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            echo=settings.DB_ECHO,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @contextmanager
    def session(self, serializable: bool = False) -> Iterator[Session]:
        """
        Context manager for a unit of work.

        Commits on success, rolls back on any exception.

        Args:
            serializable: Run the transaction at SERIALIZABLE isolation
                (PostgreSQL; SQLite transactions are already serialized)

        Example:
            with database.session() as session:
                session.add(obj)
        """
        session = self.session_factory()
        try:
            if serializable and self.dialect_name == "postgresql":
                session.connection(execution_options={"isolation_level": "SERIALIZABLE"})
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self) -> None:
        """Create all tables (development and tests; production uses Alembic)."""
        from .base import Base
        from . import models_sqlalchemy  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created")

    def drop_all(self) -> None:
        """Drop all database tables. Use with caution!"""
        from .base import Base

        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        """Close the engine and all pooled connections."""
        self.engine.dispose()
