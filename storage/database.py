"""
Storage - Database.

============================================================
RESPONSIBILITY
============================================================
Builds the SQLAlchemy engine and session factory and provides
transactional session scopes.

- DATABASE_URL selects the database (default: local SQLite file)
- DATABASE_ECHO=true logs SQL statements
- .env files are honoured via python-dotenv

============================================================
"""

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from storage.models.base import Base
from storage.repositories.exceptions import TransactionError


load_dotenv()

logger = logging.getLogger(__name__)


DEFAULT_DATABASE_URL = "sqlite:///deployment_monitor.db"


_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def get_database_url() -> str:
    """Get database URL from environment."""
    url = os.getenv("DATABASE_URL")
    if not url:
        url = DEFAULT_DATABASE_URL
        logger.warning(f"DATABASE_URL not set, using default: {url}")
    return url


def create_database_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create a SQLAlchemy engine.

    Args:
        url: Database URL (defaults to DATABASE_URL)
        echo: Log SQL statements (defaults to DATABASE_ECHO)
    """
    url = url or get_database_url()
    if echo is None:
        echo = os.getenv("DATABASE_ECHO", "false").lower() == "true"

    kwargs = {"echo": echo, "future": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            # one shared connection, otherwise each session sees an empty database
            kwargs["poolclass"] = StaticPool

    logger.info(f"Creating database engine for: {url.split('@')[-1]}")
    engine = create_engine(url, **kwargs)

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        logger.debug("Database connection established")

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        expire_on_commit=False,
    )


def get_engine() -> Engine:
    """Get the global engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = create_database_engine()
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionFactory
    if _SessionFactory is None:
        _SessionFactory = create_session_factory(get_engine())
    return _SessionFactory


def reset_engine() -> None:
    """Dispose the global engine and forget the session factory."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


@contextmanager
def session_scope(
    session_factory: Optional[sessionmaker] = None,
) -> Generator[Session, None, None]:
    """
    Transactional session scope.

    Commits when the block exits normally and rolls back on any
    exception. A failed commit is raised as TransactionError.

    Usage:
        with session_scope() as session:
            DeploymentRepository(session).save(machine)
    """
    factory = session_factory or get_session_factory()
    session = factory()
    try:
        yield session
    except Exception as e:
        logger.error(f"Transaction failed, rolling back: {e}")
        session.rollback()
        session.close()
        raise

    try:
        session.commit()
        logger.debug("Database transaction committed")
    except SQLAlchemyError as e:
        logger.error(f"Commit failed, rolling back: {e}")
        session.rollback()
        raise TransactionError(cause=e) from e
    finally:
        session.close()


def init_db(engine: Optional[Engine] = None) -> None:
    """Create all tables that do not exist yet."""
    # registers the ORM models on Base.metadata
    from storage import models  # noqa: F401

    engine = engine or get_engine()
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
