"""
Tests for the Ratings Service

Calls the service functions directly, without going through HTTP.
"""

import pytest
from sqlalchemy.orm import Session

from bookreview.models import Book, Review, User
from bookreview.services.ratings import (
    compute_average,
    recalculate_all_book_ratings,
    recalculate_book_rating,
)


@pytest.mark.parametrize(
    ("total", "count", "expected"),
    [
        (None, 0, 0.0),
        (0.0, 0, 0.0),
        (5.0, 1, 5.0),
        (8.0, 2, 4.0),
        (13.0, 3, 4.33),
        (14.0, 3, 4.67),
        (4.5 + 3.5, 2, 4.0),
    ],
)
def test_compute_average(total, count, expected):
    assert compute_average(total, count) == expected


class TestRecalculateBookRating:
    def test_recalculate_from_reviews(
        self, db_session: Session, sample_book: Book, sample_user: User, second_user: User
    ):
        db_session.add_all(
            [
                Review(book_id=sample_book.id, user_id=sample_user.id, rating=5, comment="a"),
                Review(book_id=sample_book.id, user_id=second_user.id, rating=2, comment="b"),
            ]
        )
        db_session.commit()

        recalculate_book_rating(db_session, sample_book.id)

        db_session.refresh(sample_book)
        assert sample_book.average_rating == 3.5
        assert sample_book.total_reviews == 2

    def test_recalculate_without_reviews_resets_to_zero(
        self, db_session: Session, sample_book: Book
    ):
        sample_book.average_rating = 3.0
        sample_book.total_reviews = 4
        db_session.commit()

        recalculate_book_rating(db_session, sample_book.id)

        db_session.refresh(sample_book)
        assert sample_book.average_rating == 0.0
        assert sample_book.total_reviews == 0

    def test_recalculate_missing_book_is_skipped(self, db_session: Session):
        # Must not raise
        recalculate_book_rating(db_session, 424242)

    def test_recalculate_all(
        self, db_session: Session, sample_book: Book, multiple_books: list[Book], sample_user: User
    ):
        db_session.add(
            Review(book_id=multiple_books[0].id, user_id=sample_user.id, rating=1, comment="meh")
        )
        # Stale aggregate on a book with no reviews
        sample_book.total_reviews = 3
        sample_book.average_rating = 4.0
        db_session.commit()

        updated = recalculate_all_book_ratings(db_session)

        assert updated == 16
        db_session.refresh(sample_book)
        db_session.refresh(multiple_books[0])
        assert (sample_book.average_rating, sample_book.total_reviews) == (0.0, 0)
        assert (multiple_books[0].average_rating, multiple_books[0].total_reviews) == (1.0, 1)
