"""
Database connection and session management
"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker

from app.core.config import settings
from app.core.fulltext import SQLITE_FUNCTION_NAME, sqlite_fulltext_match


def _engine_options(url: str) -> dict:
    """
    Build create_engine() keyword arguments for the given database URL.

    Server databases get pooling and timeouts; SQLite only needs to be
    shareable across threads (FastAPI runs sync endpoints in a threadpool).
    """
    backend = make_url(url).get_backend_name()

    if backend == "sqlite":
        return {"connect_args": {"check_same_thread": False}}

    options = {
        "pool_pre_ping": True,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_recycle": settings.DB_POOL_RECYCLE,  # Recycle connections after 1 hour
    }
    if backend == "postgresql":
        options["connect_args"] = {
            "connect_timeout": settings.DB_CONNECT_TIMEOUT,
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}",
        }
    elif backend == "mysql":
        options["connect_args"] = {"connect_timeout": settings.DB_CONNECT_TIMEOUT}
    return options


def _prepare_sqlite_connection(dbapi_connection, connection_record):
    """Enable FK cascades and register the full-text match function."""
    dbapi_connection.create_function(
        SQLITE_FUNCTION_NAME, 2, sqlite_fulltext_match, deterministic=True
    )
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str) -> Engine:
    """
    Create an engine for ``url``.
    Used for the application engine and by tests for throwaway databases.
    """
    db_engine = create_engine(url, **_engine_options(url))
    if db_engine.dialect.name == "sqlite":
        event.listen(db_engine, "connect", _prepare_sqlite_connection)
    return db_engine


engine = create_db_engine(settings.DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """
    Dependency for getting database session.
    Use in FastAPI route dependencies.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """
    Dependency returning the session factory itself.

    Streaming responses outlive the request-scoped session from get_db(),
    so they open (and close) their own session from this factory.
    """
    return SessionLocal
