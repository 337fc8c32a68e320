"""
Database Configuration and Session Management

SQLAlchemy engine, session factory and declarative base.
Services receive a Session explicitly; FastAPI routes get one from get_db().
"""
from contextlib import contextmanager
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from survey_platform.config import get_settings
from survey_platform.core.exceptions import DatabaseError, DuplicateResourceError
import logging

logger = logging.getLogger(__name__)

settings = get_settings()


def _engine_options(database_url: str) -> dict:
    # SQLite uses its own pool and rejects pool sizing arguments
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)

# expire_on_commit=False so services can shape ORM rows into schemas after commit
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)

Base = declarative_base()


def register_connection_hooks(target: Engine) -> None:
    """
    Install per-connection setup on an engine.

    PostgreSQL sessions run in UTC; SQLite gets foreign key enforcement so
    ON DELETE CASCADE behaves the same in tests as in production.
    """
    dialect = target.dialect.name

    @event.listens_for(target, "connect")
    def configure_connection(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        if dialect == "postgresql":
            cursor.execute("SET TIME ZONE 'UTC'")
        elif dialect == "sqlite":
            cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
        logger.debug("New database connection established")


register_connection_hooks(engine)


@contextmanager
def database_errors(db: Session, operation: str):
    """
    Translate SQLAlchemy failures raised inside the block.

    The session is rolled back; unique violations become
    DuplicateResourceError and everything else DatabaseError. Non-SQLAlchemy
    exceptions propagate unchanged.
    """
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error during {operation}: {e.orig}")
        raise DuplicateResourceError(f"Conflicting data for {operation}") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Database error during {operation}: {e}", exc_info=True)
        raise DatabaseError() from e


def get_db() -> Session:
    """
    Dependency function that provides a database session.

    The session is closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Create all tables.

    Development convenience only; production schemas are managed by migrations.
    """
    import survey_platform.models  # noqa: F401  registers mappers

    logger.warning("init_db() called - use migrations in production!")
    Base.metadata.create_all(bind=engine)
