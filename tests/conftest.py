"""
pytest Fixtures for Book Review API Tests

FIXTURE SCOPES:
- session scope for the engine (tables are created once)
- function scope for sessions (each test runs in a transaction that is
  rolled back afterwards)

Routes call session.commit(); because the session joins the outer
connection-level transaction, those commits never reach the database and
the rollback at teardown discards everything the test wrote.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# Settings are cached on first use, so this must run first.
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite://"

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bookreview.database import Base, get_db
from bookreview.main import app
from bookreview.models import Book, Review, User
from bookreview.services.security import hash_password
from bookreview.services.tokens import TokenService, get_token_service

TEST_PASSWORD = "SecurePass123"
SECOND_PASSWORD = "SecurePass456"


# =============================================================================
# DATABASE FIXTURES
# =============================================================================
@pytest.fixture(scope="session")
def engine():
    """
    SQLite in-memory database engine.

    StaticPool keeps the connection alive for the entire session.
    Without it, the in-memory database would disappear between connections.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(engine) -> Generator[Session, None, None]:
    """Fresh database session per test, rolled back afterwards."""
    TestSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )

    connection = engine.connect()
    transaction = connection.begin()
    session = TestSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """
    Test client using the test database.

    The get_db dependency is overridden to hand out the test session.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Session cleanup handled by db_session fixture

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def tokens() -> TokenService:
    """The token service the application uses."""
    return get_token_service()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================
@pytest.fixture
def sample_user(db_session: Session) -> User:
    user = User(
        email="testuser@example.com",
        name="Test User",
        hashed_password=hash_password(TEST_PASSWORD),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def second_user(db_session: Session) -> User:
    """A second user for ownership scenarios."""
    user = User(
        email="seconduser@example.com",
        name="Second User",
        hashed_password=hash_password(SECOND_PASSWORD),
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def sample_book(db_session: Session) -> Book:
    book = Book(
        isbn="9780451524935",
        title="1984",
        author="George Orwell",
        genre="Dystopian",
        description="A dystopian novel set in a totalitarian society.",
    )
    db_session.add(book)
    db_session.commit()
    db_session.refresh(book)
    return book


@pytest.fixture
def multiple_books(db_session: Session) -> list[Book]:
    """Fifteen books, more than the default page size."""
    books = []
    for i in range(15):
        book = Book(
            isbn=f"97800000000{i:02d}",
            title=f"Test Book {i + 1}",
            author="Jane Austen" if i % 2 == 0 else "Isaac Asimov",
            genre="Classic" if i % 3 == 0 else "Science Fiction",
        )
        books.append(book)
        db_session.add(book)

    db_session.commit()
    for book in books:
        db_session.refresh(book)

    return books


@pytest.fixture
def sample_review(
    db_session: Session,
    sample_book: Book,
    sample_user: User,
) -> Review:
    """A review by sample_user on sample_book, with the book's rating fields in sync."""
    review = Review(
        book_id=sample_book.id,
        user_id=sample_user.id,
        rating=4,
        comment="I really enjoyed reading this book.",
    )
    db_session.add(review)
    sample_book.average_rating = 4.0
    sample_book.total_reviews = 1
    db_session.commit()
    db_session.refresh(review)
    return review


# =============================================================================
# Helpers
# =============================================================================
def get_auth_header(user: User) -> dict:
    """Authorization header carrying a fresh access token for a user."""
    token = get_token_service().create_access_token(user.id, user.email)
    return {"Authorization": f"Bearer {token}"}
