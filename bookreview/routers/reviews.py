"""
Reviews Router

Endpoints:
- GET /books/{book_id}/reviews - List reviews for a book
- POST /books/{book_id}/reviews - Create a review (authenticated)
- GET /books/{book_id}/rating - Get book rating statistics
- GET /reviews/{review_id} - Get a specific review
- PUT /reviews/{review_id} - Update a review (owner only)
- DELETE /reviews/{review_id} - Delete a review (owner only)

Business Rules:
- One review per user per book (checked here, enforced by a DB constraint)
- Only the review author can update or delete their review
- Every create/update/delete recalculates the book's rating fields
"""

import logging

from fastapi import APIRouter, Request, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from bookreview.config import get_settings
from bookreview.dependencies import (
    CurrentUser,
    DbSession,
    Pagination,
    get_book_or_404,
    get_review_or_404,
)
from bookreview.exceptions import DuplicateReview, Forbidden
from bookreview.models import Review
from bookreview.schemas import (
    BookRatingStats,
    ReviewCreate,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpdate,
)
from bookreview.services.rate_limiter import limiter
from bookreview.services.ratings import recalculate_book_rating

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(
    tags=["Reviews"],
    responses={
        404: {"description": "Review or book not found"},
    },
)


def has_reviewed(db: DbSession, book_id: int, user_id: int) -> bool:
    stmt = select(Review.id).where(
        Review.book_id == book_id,
        Review.user_id == user_id,
    )
    return db.execute(stmt).first() is not None


# =============================================================================
# Book Review Endpoints
# =============================================================================
@router.get(
    "/books/{book_id}/reviews",
    response_model=ReviewListResponse,
    summary="List reviews for a book",
    description="Get a paginated list of reviews for a specific book.",
)
@limiter.limit(settings.rate_limit_default)
def list_book_reviews(
    request: Request,
    book_id: int,
    db: DbSession,
    pagination: Pagination,
) -> ReviewListResponse:
    """List all reviews for a book, newest first."""
    get_book_or_404(db, book_id)

    count_stmt = select(func.count()).select_from(Review).where(Review.book_id == book_id)
    total = db.execute(count_stmt).scalar() or 0

    stmt = (
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(pagination.skip)
        .limit(pagination.limit)
    )
    reviews = db.execute(stmt).scalars().all()

    return ReviewListResponse(
        items=[ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=pagination.page,
        limit=pagination.limit,
        pages=pagination.pages_for(total),
    )


@router.post(
    "/books/{book_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a review",
    description="Create a review for a book. Requires authentication. One review per book per user.",
    responses={
        401: {"description": "Not authenticated"},
        409: {"description": "Book already reviewed by this user"},
    },
)
@limiter.limit(settings.rate_limit_write)
def create_review(
    request: Request,
    book_id: int,
    review_data: ReviewCreate,
    db: DbSession,
    current_user: CurrentUser,
) -> ReviewResponse:
    """
    Create a new review for a book.

    Raises:
        NotFound: 404 if book not found
        DuplicateReview: 409 if the user already reviewed this book
    """
    get_book_or_404(db, book_id)

    if has_reviewed(db, book_id, current_user.id):
        raise DuplicateReview()

    review = Review(
        book_id=book_id,
        user_id=current_user.id,
        rating=review_data.rating,
        comment=review_data.comment,
    )

    try:
        with db.begin_nested():
            db.add(review)
    except IntegrityError:
        # A concurrent request inserted the same (book, user) pair first
        logger.info(f"Duplicate review rejected by constraint: book {book_id}, user id {current_user.id}")
        raise DuplicateReview() from None

    db.commit()

    recalculate_book_rating(db, book_id)

    logger.info(f"Review {review.id} added to book {book_id} by user id {current_user.id}")

    return ReviewResponse.model_validate(get_review_or_404(db, review.id))


@router.get(
    "/books/{book_id}/rating",
    response_model=BookRatingStats,
    summary="Get book rating statistics",
    description="Get the aggregated rating statistics for a book.",
)
@limiter.limit(settings.rate_limit_default)
def get_book_rating_stats(
    request: Request,
    book_id: int,
    db: DbSession,
) -> BookRatingStats:
    """Average rating and review count, as maintained on the book."""
    book = get_book_or_404(db, book_id)

    return BookRatingStats(
        book_id=book.id,
        average_rating=book.average_rating,
        total_reviews=book.total_reviews,
    )


# =============================================================================
# Single Review Endpoints
# =============================================================================
@router.get(
    "/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Get a review",
)
@limiter.limit(settings.rate_limit_default)
def get_review(
    request: Request,
    review_id: int,
    db: DbSession,
) -> ReviewResponse:
    return ReviewResponse.model_validate(get_review_or_404(db, review_id))


@router.put(
    "/reviews/{review_id}",
    response_model=ReviewResponse,
    summary="Update a review",
    description="Update your own review. Only the review author can update.",
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Not the review author"},
    },
)
@limiter.limit(settings.rate_limit_write)
def update_review(
    request: Request,
    review_id: int,
    review_data: ReviewUpdate,
    db: DbSession,
    current_user: CurrentUser,
) -> ReviewResponse:
    """
    Update an existing review.

    Only provided fields are changed.

    Raises:
        NotFound: 404 if review not found
        Forbidden: 403 if the caller is not the review author
    """
    review = get_review_or_404(db, review_id)

    if review.user_id != current_user.id:
        logger.warning(f"User id {current_user.id} tried to update review {review_id}")
        raise Forbidden("You can only update your own reviews")

    for field, value in review_data.model_dump(exclude_unset=True).items():
        setattr(review, field, value)

    db.commit()

    recalculate_book_rating(db, review.book_id)

    return ReviewResponse.model_validate(get_review_or_404(db, review_id))


@router.delete(
    "/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a review",
    description="Delete your own review. Only the review author can delete.",
    responses={
        401: {"description": "Not authenticated"},
        403: {"description": "Not the review author"},
    },
)
@limiter.limit(settings.rate_limit_write)
def delete_review(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: CurrentUser,
) -> None:
    """
    Delete a review.

    Raises:
        NotFound: 404 if review not found
        Forbidden: 403 if the caller is not the review author
    """
    review = get_review_or_404(db, review_id)

    if review.user_id != current_user.id:
        logger.warning(f"User id {current_user.id} tried to delete review {review_id}")
        raise Forbidden("You can only delete your own reviews")

    book_id = review.book_id

    db.delete(review)
    db.commit()

    recalculate_book_rating(db, book_id)

    logger.info(f"Review {review_id} deleted by user id {current_user.id}")
