"""
Database Configuration and Session Management

SQLAlchemy engine, session factory and declarative base.

The tenant directory and membership store open their own short-lived
sessions from SessionLocal; endpoints get one per request through get_db().
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from typing import Iterator
from workspace_hub.config import get_settings
import logging

logger = logging.getLogger(__name__)

settings = get_settings()


def _build_engine(url: str):
    """
    Create the engine for the configured database.

    SQLite is only used for local runs and tests; an in-memory SQLite
    database must share a single connection across threads or every
    threadpool lookup would see an empty database.
    """
    if url.startswith("sqlite"):
        in_memory = url in ("sqlite://", "sqlite:///:memory:")
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if in_memory else None,
            echo=settings.DEBUG,
        )

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,  # Verify connections before using (handles stale connections)
        echo=settings.DEBUG,
    )


engine = _build_engine(settings.DATABASE_URL)

# expire_on_commit=False lets us read attributes of committed rows
# (e.g. when building response records) without another round trip.
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)

# Base class for all models
Base = declarative_base()


@event.listens_for(engine, "connect")
def configure_connection(dbapi_connection, connection_record):
    """Set connection-level configuration on new connections."""
    cursor = dbapi_connection.cursor()
    if settings.DATABASE_URL.startswith("postgresql"):
        cursor.execute("SET TIME ZONE 'UTC'")
    elif settings.DATABASE_URL.startswith("sqlite"):
        # Membership and project rows rely on ON DELETE CASCADE
        cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    logger.debug("New database connection established")


def get_db() -> Iterator[Session]:
    """
    Dependency function that provides a database session.

    The session is automatically closed after the request completes.
    Tenant scoping is the caller's job: every query on tenant-owned
    tables must filter on the resolved tenant id.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Create all tables.

    Convenience for development and tests; real deployments should run
    migrations instead.
    """
    # Import models so they are registered on Base.metadata
    import workspace_hub.models  # noqa: F401

    logger.warning("init_db() called - use migrations in production!")
    Base.metadata.create_all(bind=engine)
