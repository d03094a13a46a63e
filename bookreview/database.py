"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the book review platform.

Session Management Pattern
==========================
We use the "session per request" pattern:
1. Request arrives → create a new session
2. Use session for all database operations in that request
3. Services commit once per unit of work (a review mutation and the
   aggregate recalculation it triggers share one transaction)
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
# Key parameters:
# - pool_size / max_overflow: connection pool sizing
# - pool_pre_ping: Test connection health before using
# - echo: Log all SQL statements in debug mode

engine = create_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
    echo=settings.debug,
)


# =============================================================================
# Session Factory
# =============================================================================
# - autocommit=False: We control when to commit
# - autoflush=False: Don't auto-flush before queries (more predictable)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    All models inherit from this class:

        class Book(Base):
            __tablename__ = "books"
            ...
    """
    pass


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Code before yield creates the session, the route uses it, and the
    finally block closes it even if an exception occurs.

    Usage in Routes:
        from fastapi import Depends
        from bookreview.database import get_db

        @router.get("/books/{book_id}")
        def get_book(book_id: int, db: Session = Depends(get_db)):
            ...

    Yields:
        SQLAlchemy Session instance
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def create_tables() -> None:
    """
    Create all database tables.

    Useful for development and tests. Production schemas are managed
    outside this package.
    """
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    """
    Drop all database tables.

    DANGER: This deletes all data! Only use in development or tests.
    """
    Base.metadata.drop_all(bind=engine)
