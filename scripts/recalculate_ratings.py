#!/usr/bin/env python3
"""
Rating Recalculation Script

Recomputes average_rating and total_reviews for books from their current
reviews. Use it after bulk imports or manual edits to the reviews table.

Usage:
    # From project root with venv activated:
    python scripts/recalculate_ratings.py

    # Options:
    python scripts/recalculate_ratings.py --book-id 42   # A single book
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from bookreview.database import SessionLocal
from bookreview.models import Book
from bookreview.services.ratings import (
    recalculate_all_book_ratings,
    recalculate_book_rating,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def recalculate(book_id: int | None = None) -> int:
    """
    Recalculate ratings for one book, or every book when book_id is None.

    Returns:
        Number of books recalculated
    """
    db = SessionLocal()
    try:
        if book_id is None:
            return recalculate_all_book_ratings(db)

        if db.get(Book, book_id) is None:
            logger.error(f"Book {book_id} not found")
            return 0

        recalculate_book_rating(db, book_id)
        book = db.get(Book, book_id)
        logger.info(
            f"Book {book_id}: average_rating={book.average_rating} "
            f"total_reviews={book.total_reviews}"
        )
        return 1
    finally:
        db.close()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Recalculate book rating aggregates from their reviews"
    )
    parser.add_argument(
        "--book-id",
        type=int,
        default=None,
        help="Only recalculate this book (default: all books)",
    )

    args = parser.parse_args()

    count = recalculate(book_id=args.book_id)
    logger.info(f"Done: {count} book(s) recalculated")


if __name__ == "__main__":
    main()
