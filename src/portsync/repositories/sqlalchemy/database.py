"""Database connection and session management."""

from typing import Optional

from sqlalchemy import create_engine, Engine
from sqlalchemy.orm import sessionmaker, declarative_base, scoped_session

from portsync.config.settings import get_settings

Base = declarative_base()

# Module-level database state (can be reconfigured at runtime)
_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None
_ScopedSession: Optional[scoped_session] = None


def _engine_for(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Scheduler and request threads share the engine
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args, echo=False)


def get_engine() -> Engine:
    """Get or create the database engine."""
    global _engine
    if _engine is None:
        _engine = _engine_for(get_settings().database_url)
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the session factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(),
        )
    return _SessionLocal


def get_scoped_session() -> scoped_session:
    """
    Get the thread-local session registry.

    Repositories built on it can be shared between the scheduler thread and
    request threads; each thread transparently gets its own Session.
    """
    global _ScopedSession
    if _ScopedSession is None:
        _ScopedSession = scoped_session(get_session_factory())
    return _ScopedSession


def init_db_with_url(database_url: str) -> None:
    """Initialize the database at a specific URL."""
    global _engine, _SessionLocal, _ScopedSession

    reset_database()
    _engine = _engine_for(database_url)
    _SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=_engine,
    )
    _ScopedSession = scoped_session(_SessionLocal)

    from portsync.repositories.sqlalchemy import orm_models  # noqa: F401
    Base.metadata.create_all(bind=_engine)


def reset_database() -> None:
    """Reset database state (for reconfiguration)."""
    global _engine, _SessionLocal, _ScopedSession

    if _ScopedSession is not None:
        _ScopedSession.remove()
    if _engine is not None:
        _engine.dispose()

    _engine = None
    _SessionLocal = None
    _ScopedSession = None
