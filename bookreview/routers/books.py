"""
Books Router

CRUD endpoints for the book catalog.

- Listing and search are public and paginated (newest first)
- Creating, updating and deleting require a bearer access token
- average_rating and total_reviews are maintained by the rating service,
  never by these endpoints
- Deleting a book deletes its reviews (ORM cascade)
"""

import logging

from fastapi import APIRouter, Query, Request, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from bookreview.config import get_settings
from bookreview.dependencies import (
    CurrentIdentity,
    DbSession,
    Pagination,
    ReviewPreview,
    get_book_or_404,
)
from bookreview.exceptions import DuplicateIsbn
from bookreview.models import Book, Review
from bookreview.schemas import (
    BookCreate,
    BookDetailResponse,
    BookListResponse,
    BookResponse,
    BookUpdate,
    ReviewResponse,
)
from bookreview.services.rate_limiter import limiter
from bookreview.utils.validators import escape_like, validate_search_query

logger = logging.getLogger(__name__)
settings = get_settings()

NO_REVIEWS_MESSAGE = "No reviews found for this book"

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"description": "Book not found"},
    },
)


# =============================================================================
# Helper Functions
# =============================================================================
def contains(column, term: str):
    """Case-insensitive substring match, with LIKE wildcards taken literally."""
    pattern = f"%{escape_like(term.lower())}%"
    return func.lower(column).like(pattern, escape="\\")


def isbn_taken(db: DbSession, isbn: str, exclude_id: int | None = None) -> bool:
    stmt = select(Book.id).where(Book.isbn == isbn)
    if exclude_id is not None:
        stmt = stmt.where(Book.id != exclude_id)
    return db.execute(stmt).first() is not None


def paginate_books(db: DbSession, base_stmt, pagination: Pagination) -> BookListResponse:
    """Count the matches, then fetch the requested page newest first."""
    count_stmt = select(func.count()).select_from(base_stmt.subquery())
    total = db.execute(count_stmt).scalar() or 0

    stmt = (
        base_stmt
        .order_by(Book.created_at.desc(), Book.id.desc())
        .offset(pagination.skip)
        .limit(pagination.limit)
    )
    books = db.execute(stmt).scalars().all()

    return BookListResponse(
        items=[BookResponse.model_validate(book) for book in books],
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        pages=pagination.pages_for(total),
    )


# =============================================================================
# Endpoints
# =============================================================================
@router.get(
    "/search",
    response_model=BookListResponse,
    summary="Search books",
    description="Case-insensitive substring search over title, author and ISBN.",
    responses={400: {"description": "Missing or empty query"}},
)
@limiter.limit(settings.rate_limit_search)
def search_books(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    q: str | None = Query(default=None, description="Search text", examples=["orwell"]),
) -> BookListResponse:
    """
    Search books.

    Examples:
        GET /api/v1/books/search?q=orwell
        GET /api/v1/books/search?q=978&page=2&limit=20
    """
    term = validate_search_query(q)

    stmt = select(Book).where(
        or_(
            contains(Book.title, term),
            contains(Book.author, term),
            contains(Book.isbn, term),
        )
    )
    return paginate_books(db, stmt, pagination)


@router.get(
    "/",
    response_model=BookListResponse,
    summary="List all books",
    description="Get a paginated list of books, optionally filtered by author or genre.",
)
@limiter.limit(settings.rate_limit_default)
def list_books(
    request: Request,
    db: DbSession,
    pagination: Pagination,
    author: str | None = Query(default=None, description="Author name contains"),
    genre: str | None = Query(default=None, description="Genre contains"),
) -> BookListResponse:
    """
    List books with pagination and optional filtering.

    An empty page is a normal 200 response with an empty items list.
    """
    stmt = select(Book)

    if author and author.strip():
        stmt = stmt.where(contains(Book.author, author.strip()))
    if genre and genre.strip():
        stmt = stmt.where(contains(Book.genre, genre.strip()))

    return paginate_books(db, stmt, pagination)


@router.get(
    "/{book_id}",
    response_model=BookDetailResponse,
    summary="Get a book by ID",
    description="Book details with the first page of its reviews.",
)
@limiter.limit(settings.rate_limit_default)
def get_book(
    request: Request,
    book_id: int,
    db: DbSession,
    pagination: ReviewPreview,
) -> BookDetailResponse:
    """
    Get a single book by its ID.

    Reviews are paginated separately with page/limit (default 5 per page).
    """
    book = get_book_or_404(db, book_id)

    reviews_count = db.execute(
        select(func.count()).select_from(Review).where(Review.book_id == book_id)
    ).scalar() or 0

    stmt = (
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(pagination.skip)
        .limit(pagination.limit)
    )
    reviews = db.execute(stmt).scalars().all()

    return BookDetailResponse(
        book=BookResponse.model_validate(book),
        reviews=[ReviewResponse.model_validate(r) for r in reviews],
        reviews_count=reviews_count,
        reviews_message=None if reviews else NO_REVIEWS_MESSAGE,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.post(
    "/",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new book",
    description="Add a book to the catalog. Requires authentication.",
    responses={
        401: {"description": "Not authenticated"},
        409: {"description": "ISBN already exists"},
    },
)
@limiter.limit(settings.rate_limit_write)
def create_book(
    request: Request,
    book_data: BookCreate,
    db: DbSession,
    identity: CurrentIdentity,
) -> BookResponse:
    """
    Create a new book.

    Rating fields start at zero; they change only when reviews do.

    Raises:
        DuplicateIsbn: 409 if a book with the same ISBN exists
    """
    if isbn_taken(db, book_data.isbn):
        raise DuplicateIsbn()

    book = Book(**book_data.model_dump())
    try:
        with db.begin_nested():
            db.add(book)
    except IntegrityError:
        # A concurrent request inserted the same ISBN first
        logger.info(f"Duplicate ISBN rejected by constraint: {book_data.isbn}")
        raise DuplicateIsbn() from None

    db.commit()
    db.refresh(book)

    logger.info(f"Book {book.id} created by user id {identity.user_id}")

    return BookResponse.model_validate(book)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    summary="Update a book",
    description="Partially update a book. Requires authentication.",
    responses={
        401: {"description": "Not authenticated"},
        409: {"description": "ISBN already exists"},
    },
)
@limiter.limit(settings.rate_limit_write)
def update_book(
    request: Request,
    book_id: int,
    book_data: BookUpdate,
    db: DbSession,
    identity: CurrentIdentity,
) -> BookResponse:
    """
    Update an existing book.

    Only provided fields are updated. A changed ISBN is checked for
    uniqueness against every other book.

    Raises:
        NotFound: 404 if book not found
        DuplicateIsbn: 409 if the new ISBN belongs to another book
    """
    book = get_book_or_404(db, book_id)

    update_data = book_data.model_dump(exclude_unset=True)

    new_isbn = update_data.get("isbn")
    if new_isbn is not None and new_isbn != book.isbn:
        if isbn_taken(db, new_isbn, exclude_id=book.id):
            raise DuplicateIsbn()

    try:
        with db.begin_nested():
            for field, value in update_data.items():
                setattr(book, field, value)
    except IntegrityError:
        logger.info(f"Duplicate ISBN rejected by constraint: {new_isbn}")
        raise DuplicateIsbn() from None

    db.commit()
    db.refresh(book)

    logger.info(f"Book {book.id} updated by user id {identity.user_id}")

    return BookResponse.model_validate(book)


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a book",
    description="Delete a book and all of its reviews. Requires authentication.",
    responses={401: {"description": "Not authenticated"}},
)
@limiter.limit(settings.rate_limit_write)
def delete_book(
    request: Request,
    book_id: int,
    db: DbSession,
    identity: CurrentIdentity,
) -> None:
    """
    Delete a book.

    Returns 204 No Content on success.

    Raises:
        NotFound: 404 if book not found
    """
    book = get_book_or_404(db, book_id)
    db.delete(book)
    db.commit()

    logger.info(f"Book {book_id} and its reviews deleted by user id {identity.user_id}")
