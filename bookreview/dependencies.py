"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

Provided here:
- Database sessions (per-request)
- Pagination parameters
- The auth guard (bearer access token -> AuthIdentity)
- Common "get or 404" lookups
"""

import math
from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from bookreview.database import get_db
from bookreview.exceptions import NotFound
from bookreview.models import Book, Review, User
from bookreview.services.auth import get_authenticated_user, require_auth
from bookreview.services.tokens import AuthIdentity, TokenService, get_token_service

# =============================================================================
# Type Aliases with Annotated
# =============================================================================
# Instead of writing:
#   def list_books(db: Session = Depends(get_db)):
#
# You can write:
#   def list_books(db: DbSession):

DbSession = Annotated[Session, Depends(get_db)]
Tokens = Annotated[TokenService, Depends(get_token_service)]


# =============================================================================
# Pagination Parameters
# =============================================================================
MAX_PAGE_SIZE = 50


class PaginationParams:
    """
    Common pagination parameters for list endpoints.

    Out-of-range values fall back instead of failing the request:
    - page below 1 becomes 1
    - limit outside [1, MAX_PAGE_SIZE] becomes default_limit

    Usage in route:
        @router.get("/books/")
        def list_books(db: DbSession, pagination: Pagination):
            stmt = stmt.offset(pagination.skip).limit(pagination.limit)
    """

    default_limit = 10

    def __init__(
        self,
        page: int | None = Query(
            default=None,
            description="Page number (1-indexed, defaults to 1)",
            examples=[1, 2, 3],
        ),
        limit: int | None = Query(
            default=None,
            description=f"Items per page (1-{MAX_PAGE_SIZE})",
            examples=[5, 10, 25],
        ),
    ) -> None:
        self.page = page if page is not None and page >= 1 else 1
        self.limit = (
            limit
            if limit is not None and 1 <= limit <= MAX_PAGE_SIZE
            else self.default_limit
        )

    @property
    def skip(self) -> int:
        """Number of records to skip: page 1 → 0, page 2 → limit, ..."""
        return (self.page - 1) * self.limit

    def pages_for(self, total: int) -> int:
        """Total number of pages for a result count."""
        return math.ceil(total / self.limit) if total > 0 else 0


class ReviewPreviewPagination(PaginationParams):
    """Pagination for the reviews embedded in a book detail response."""

    default_limit = 5


Pagination = Annotated[PaginationParams, Depends()]
ReviewPreview = Annotated[ReviewPreviewPagination, Depends()]


# =============================================================================
# Auth Guard
# =============================================================================
# HTTPBearer extracts the token from "Authorization: Bearer <token>" and adds
# the "Authorize" button to Swagger UI. auto_error=False lets require_auth()
# produce the 401 so every auth failure looks the same.

bearer_scheme = HTTPBearer(
    auto_error=False,
    description="Access token from /auth/login, /auth/register or /auth/refresh",
)


def get_current_identity(
    tokens: Tokens,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthIdentity:
    """
    Validate the bearer access token and return the caller's identity.

    The identity lives only for the current request; nothing is stored
    server-side beyond what the token encodes.

    Raises:
        Unauthorized: 401 if the token is missing or invalid
    """
    token = credentials.credentials if credentials else None
    return require_auth(tokens, token)


CurrentIdentity = Annotated[AuthIdentity, Depends(get_current_identity)]


def get_current_user(db: DbSession, identity: CurrentIdentity) -> User:
    """
    Load the authenticated user's record.

    Raises:
        Unauthorized: 401 if the account no longer exists
    """
    return get_authenticated_user(db, identity)


CurrentUser = Annotated[User, Depends(get_current_user)]


# =============================================================================
# Lookups
# =============================================================================
def get_book_or_404(db: Session, book_id: int) -> Book:
    """
    Get a book by ID or raise 404.

    Raises:
        NotFound: if the book does not exist
    """
    book = db.get(Book, book_id)
    if book is None:
        raise NotFound(f"Book with id {book_id} not found")
    return book


def get_review_or_404(db: Session, review_id: int) -> Review:
    """Get a review by ID with its user loaded, or raise 404."""
    stmt = (
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.id == review_id)
    )
    review = db.execute(stmt).scalar_one_or_none()

    if review is None:
        raise NotFound(f"Review with id {review_id} not found")
    return review
