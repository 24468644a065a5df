"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the Book Review API.

We use synchronous SQLAlchemy with PostgreSQL (psycopg2) in production.
SQLite URLs are also accepted for local runs and tests.

Session Management Pattern
==========================
We use the "session per request" pattern:
1. Request arrives → create a new session
2. Use session for all database operations in that request
3. Commit on success, rollback on failure
4. Close session when request ends

This is implemented using FastAPI's dependency injection.
"""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bookreview.config import get_settings

settings = get_settings()


# =============================================================================
# Database Engine
# =============================================================================
# Pool sizing only applies to server databases. SQLite connections are
# shared across the threads FastAPI runs sync endpoints in.

if settings.is_sqlite:
    engine_options = {
        "connect_args": {"check_same_thread": False},
    }
else:
    engine_options = {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,  # Verify connections are alive before using
    }

engine = create_engine(
    settings.database_url,
    echo=settings.debug,  # Log SQL in debug mode
    **engine_options,
)


# =============================================================================
# Session Factory
# =============================================================================
# - autocommit=False: We control when to commit
# - autoflush=False: Don't auto-flush before queries

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Alembic uses Base.metadata to discover the tables for migrations.
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Code before yield creates the session, the route handler uses it,
    and the finally block closes it even if the handler raised.

    Usage in Routes:
        @router.get("/books/")
        def list_books(db: DbSession):
            ...

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

