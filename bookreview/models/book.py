"""
Book Model

A catalog entry identified by its 13-digit ISBN.

Derived Fields
==============
average_rating and total_reviews are denormalized aggregates of the book's
reviews. They are only written by services.ratings.recalculate_book_rating()
and are never accepted from request bodies, so listings can show ratings
without COUNT/AVG subqueries on every request.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bookreview.database import Base

if TYPE_CHECKING:
    from bookreview.models.review import Review


class Book(Base):
    """
    Book model representing books in the catalog.

    Table: books

    Fields:
    - isbn: 13-digit International Standard Book Number (unique)
    - title: Book title (required)
    - author: Author name (required)
    - genre: Optional genre label
    - description: Optional summary
    - average_rating: Mean review rating, 0 when there are no reviews
    - total_reviews: Number of reviews

    Relationships:
    - reviews: One-to-Many, deleted together with the book

    Example:
        book = Book(
            isbn="9780451524935",
            title="1984",
            author="George Orwell",
            genre="Dystopian",
        )
    """

    __tablename__ = "books"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    isbn: Mapped[str] = mapped_column(
        String(13),
        unique=True,
        index=True,
        nullable=False,
        comment="13-digit International Standard Book Number"
    )

    title: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Book title"
    )

    author: Mapped[str] = mapped_column(
        String(255),
        index=True,
        nullable=False,
        comment="Author name"
    )

    genre: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="Genre label"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Book description or summary"
    )

    # -------------------------------------------------------------------------
    # Rating Aggregates
    # -------------------------------------------------------------------------
    average_rating: Mapped[float] = mapped_column(
        Float,
        default=0.0,
        nullable=False,
        comment="Average review rating (0-5), 0 if no reviews"
    )

    total_reviews: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Number of reviews for this book"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="book",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint(
            "average_rating >= 0 AND average_rating <= 5",
            name="ck_book_average_rating_range",
        ),
        CheckConstraint("total_reviews >= 0", name="ck_book_total_reviews"),
    )

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', isbn='{self.isbn}')"
