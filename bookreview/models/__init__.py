"""
SQLAlchemy Models Package

Model Relationships:
- User -> Review: One-to-Many (a user owns their reviews)
- Book -> Review: One-to-Many (reviews are deleted with their book)

Import all models here to:
1. Make them available as: from bookreview.models import Book, Review, User
2. Ensure Alembic discovers them for migrations
"""

from bookreview.models.user import User
from bookreview.models.book import Book
from bookreview.models.review import Review

__all__ = [
    "User",
    "Book",
    "Review",
]
