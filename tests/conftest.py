"""
pytest Fixtures for Book Review Tests

Shared fixtures used across all test files.

For database tests, we use:
- session scope for the engine (expensive to create)
- function scope for sessions (isolation between tests)

External collaborators (AI text, cover lookup) never touch the network:
the client fixture swaps in the fakes from tests/fakes.py.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
import os

os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["OPENAI_API_KEY"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

from collections.abc import Generator
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bookreview.database import Base, get_db
from bookreview.main import app
from bookreview.models import Book, Review, User
from bookreview.services.ai import get_ai_service
from bookreview.services.covers import get_cover_service
from bookreview.services.reviews import create_review
from tests.fakes import FakeAIService, FakeCoverService

# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# SQLite in-memory keeps the suite fast and self-contained. SQLite ignores
# SELECT ... FOR UPDATE and everything here shares one connection;
# tests/test_concurrency.py writes from several connections instead.


@pytest.fixture(scope="session")
def engine():
    """
    Create a SQLite in-memory database engine.

    StaticPool keeps the single connection alive for the whole session;
    without it the in-memory database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy
    # emit BEGIN itself
    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """
    Create a fresh database session for each test.

    The session runs inside an outer transaction that is rolled back after
    the test. Service commits and rollbacks only release or roll back
    savepoints (join_transaction_mode="create_savepoint"), so a service
    that rolls back on IntegrityError does not wipe the test's fixtures.
    """
    connection = engine.connect()
    transaction = connection.begin()

    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=connection,
        join_transaction_mode="create_savepoint",
    )
    session = TestSessionLocal()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def fake_ai() -> FakeAIService:
    return FakeAIService()


@pytest.fixture
def fake_covers() -> FakeCoverService:
    return FakeCoverService()


@pytest.fixture(scope="function")
def client(
    db_session: Session,
    fake_ai: FakeAIService,
    fake_covers: FakeCoverService,
) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database and fake collaborators.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_service] = lambda: fake_ai
    app.dependency_overrides[get_cover_service] = lambda: fake_covers

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def make_book(db_session: Session):
    """
    Factory fixture: insert a book with a preset aggregate.

    Recommendation tests need books that look well reviewed without
    writing hundreds of review rows.
    """

    def _make_book(
        title: str,
        author: str,
        genres: str | None = None,
        average_rating: str = "0.00",
        review_count: int = 0,
    ) -> Book:
        book = Book(
            title=title,
            author=author,
            genres=genres,
            average_rating=Decimal(average_rating),
            review_count=review_count,
        )
        db_session.add(book)
        db_session.commit()
        db_session.refresh(book)
        return book

    return _make_book


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """Create a sample user for testing."""
    user = User(email="reader@example.com", name="Test Reader")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def second_user(db_session: Session) -> User:
    """Create a second user for testing ownership scenarios."""
    user = User(email="second@example.com", name="Second Reader")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def make_users(db_session: Session):
    """Factory fixture: make_users(n) creates n users."""

    def _make_users(count: int) -> list[User]:
        users = [
            User(email=f"reviewer{i}@example.com", name=f"Reviewer {i}")
            for i in range(count)
        ]
        db_session.add_all(users)
        db_session.commit()
        for user in users:
            db_session.refresh(user)
        return users

    return _make_users


@pytest.fixture
def sample_book(db_session: Session) -> Book:
    """Create a sample book for testing."""
    book = Book(
        title="The Hobbit",
        author="J.R.R. Tolkien",
        description="Bilbo Baggins joins a quest to reclaim a dwarf kingdom.",
        genres="Fantasy, Adventure",
        published_year=1937,
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def second_book(db_session: Session) -> Book:
    book = Book(
        title="Dune",
        author="Frank Herbert",
        genres="Science Fiction",
        published_year=1965,
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def sample_review(
    db_session: Session,
    sample_book: Book,
    sample_user: User,
) -> Review:
    """Create a 4-star review through the service, so the aggregate matches."""
    return create_review(
        db_session,
        sample_book.id,
        sample_user.id,
        4,
        "I really enjoyed reading this book.",
    )
