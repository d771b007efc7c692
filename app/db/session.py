from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager, suppress

from loguru import logger
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.models import Base
from app.plans.errors import PersistenceError


def _is_postgresql(database_url: str) -> bool:
    return "postgresql" in database_url.lower() or "postgres" in database_url.lower()


def _validate_postgresql_driver() -> None:
    """Validate PostgreSQL driver is installed when using PostgreSQL.

    Imports psycopg2 eagerly because SQLAlchemy
    will try to import it when creating the engine.
    """
    try:
        import psycopg2  # noqa: F401

        logger.info("PostgreSQL driver (psycopg2) is available")
    except ImportError as e:
        logger.error("PostgreSQL driver (psycopg2) is not installed. Install it with: pip install psycopg2-binary")
        raise ImportError("PostgreSQL driver required. Install with: pip install psycopg2-binary") from e


def create_db_engine(database_url: str) -> Engine:
    """Create the database engine for a configured URL.

    In-memory SQLite gets a StaticPool so every session sees the same database.
    """
    logger.info("Initializing database engine")

    connect_args: dict[str, object] = {}
    engine_kwargs: dict[str, object] = {}
    if _is_postgresql(database_url):
        _validate_postgresql_driver()
        connect_args = {
            "connect_timeout": 10,
            "application_name": "pb-assistant",
        }
        engine_kwargs = {"pool_pre_ping": True, "pool_recycle": 3600}
    elif "sqlite" in database_url.lower():
        connect_args = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            engine_kwargs = {"poolclass": StaticPool}
        logger.warning("Using SQLite database (local development only)")

    engine = create_engine(database_url, connect_args=connect_args, echo=False, **engine_kwargs)
    logger.info("Database engine initialized")
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def ensure_schema(engine: Engine) -> None:
    """Create missing tables."""
    logger.info("Ensuring database tables exist")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables verified")


def check_connection(engine: Engine) -> None:
    """Test database connection on startup."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection test successful")
    except Exception as e:
        logger.error(f"Database connection test failed: {e}")
        raise


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Transactional session context manager.

    Commits when the block exits cleanly, rolls back and re-raises otherwise.
    Everything done inside one block is a single transaction.
    """
    session = factory()
    try:
        yield session
        with suppress(Exception):
            logger.debug(f"Before commit: dirty={len(session.dirty)}, new={len(session.new)}, deleted={len(session.deleted)}")
        # Bulk DELETE/UPDATE statements never show up in dirty/new, so always commit
        session.commit()
    except Exception as e:
        logger.error(
            f"Database session error, rolling back: {e}. "
            f"Error type: {type(e).__name__}, session state: "
            f"dirty={len(session.dirty)}, new={len(session.new)}, deleted={len(session.deleted)}"
        )
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def store_transaction(factory: sessionmaker[Session], operation: str) -> Generator[Session, None, None]:
    """One transaction per store operation; database errors become PersistenceError."""
    try:
        with session_scope(factory) as session:
            yield session
    except SQLAlchemyError as e:
        logger.error("Store operation failed", operation=operation, error=str(e))
        raise PersistenceError(f"Failed to {operation}: {e}") from e
