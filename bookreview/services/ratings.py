"""
Ratings Service

Maintains the denormalized rating fields on the Book model:
- average_rating: The mean of all review ratings (0 when there are none)
- total_reviews: Total number of reviews

These fields are recomputed from the book's current reviews whenever a
review is created, updated, or deleted. Recomputation runs after the review
write has committed and is not part of the same transaction; concurrent
review writes on one book resolve as last-writer-wins.

Rounding: the mean is rounded to 2 decimal places with Python's round().
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bookreview.models import Book
from bookreview.models.review import Review

logger = logging.getLogger(__name__)

RATING_PRECISION = 2


def compute_average(total: float | None, count: int) -> float:
    """
    Mean rating rounded to RATING_PRECISION, 0.0 when there are no ratings.

    >>> compute_average(8.0, 2)
    4.0
    >>> compute_average(None, 0)
    0.0
    """
    if count == 0 or total is None:
        return 0.0
    return round(float(total) / count, RATING_PRECISION)


def recalculate_book_rating(db: Session, book_id: int) -> None:
    """
    Recalculate and update a book's rating aggregations.

    Called after any review create/update/delete operation to keep
    the denormalized fields in sync. A book deleted in the meantime is
    skipped without error.

    Args:
        db: Database session
        book_id: ID of the book to update

    Note:
        This function commits the changes to the database.
    """
    stmt = select(
        func.sum(Review.rating),
        func.count(Review.id),
    ).where(Review.book_id == book_id)

    total, review_count = db.execute(stmt).one()

    book = db.get(Book, book_id)
    if book is None:
        logger.debug(f"Skipping rating recalculation, book {book_id} no longer exists")
        return

    book.average_rating = compute_average(total, review_count)
    book.total_reviews = review_count
    db.commit()

    logger.debug(
        f"Book {book_id} rating recalculated: "
        f"average={book.average_rating} total={review_count}"
    )


def recalculate_all_book_ratings(db: Session) -> int:
    """
    Recalculate rating aggregations for all books.

    Useful for data migrations or fixing inconsistencies.

    Returns:
        Number of books updated
    """
    book_ids = db.execute(select(Book.id)).scalars().all()

    for book_id in book_ids:
        recalculate_book_rating(db, book_id)

    logger.info(f"Recalculated ratings for {len(book_ids)} books")

    return len(book_ids)
