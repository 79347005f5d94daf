"""
Database engine, session factory and declarative base.

SQLite is used for local development and tests (file or in-memory),
PostgreSQL for production. Tables are created directly for SQLite;
PostgreSQL schemas are managed with Alembic.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from marksboard.config import DATABASE_URL


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def build_engine(url: str):
    """Create an engine with dialect-specific pool and connection settings."""
    engine_kwargs = {"echo": False}

    if url.startswith("postgresql"):
        engine_kwargs.update({
            "pool_size": 10,
            "max_overflow": 20,
            "pool_pre_ping": True,
        })
    elif url.startswith("sqlite"):
        # FastAPI serves sync routes from a threadpool
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_sqlite(url):
            # Every connection must see the same in-memory database
            engine_kwargs["poolclass"] = StaticPool

    new_engine = create_engine(url, **engine_kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            if not _is_memory_sqlite(url):
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


def get_db():
    """
    FastAPI dependency yielding one session per request.

    The session is always closed, returning its connection to the pool
    even when the route raises.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create all tables on the configured engine (SQLite development)."""
    # Registers every model on Base.metadata
    import marksboard.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables():
    import marksboard.models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
